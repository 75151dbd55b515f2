"""Tests for the /api REST blueprint."""

from datetime import datetime
from unittest.mock import MagicMock

import pytest

import lichsuviet.routes as routes_mod


PERIOD_ROW = {
    "id": 1, "name": "Nhà Trần", "slug": "tran", "timeframe": "1225-1400",
    "description": "Ba lần kháng chiến chống Nguyên Mông", "icon": "crown",
    "sort_order": 3, "is_show": True,
}

EVENT_ROW = {
    "id": 10, "period_id": 1, "title": "Chiến thắng Bạch Đằng", "description": "Trận thủy chiến",
    "detailed_description": None, "year": "1288", "image_url": "/uploads/bach-dang.webp",
    "sort_order": 0,
    "event_types": [{"id": 1, "name": "Chiến tranh", "slug": "chien-tranh", "color": "#C62828"}],
}


@pytest.fixture()
def storage(monkeypatch):
    mock = MagicMock()
    monkeypatch.setattr(routes_mod, "storage", mock)
    return mock


class TestHealth:
    def test_health(self, http):
        assert http.get("/api/health").get_json() == {"status": "ok"}


class TestSettings:
    def test_get_setting(self, http, storage):
        storage.get_setting.return_value = {
            "id": 4, "key": "popup_enabled", "value": "true", "display_name": "Bật popup",
            "description": "", "category": "popup", "input_type": "select", "sort_order": 0,
            "updated_at": datetime(2026, 3, 1, 8, 30),
        }
        response = http.get("/api/settings/popup_enabled")

        assert response.status_code == 200
        data = response.get_json()
        assert data["value"] == "true"
        assert data["displayName"] == "Bật popup"
        assert data["updatedAt"] == "2026-03-01T08:30:00"
        storage.get_setting.assert_called_once_with("popup_enabled")

    def test_missing_setting_404(self, http, storage):
        storage.get_setting.return_value = None
        response = http.get("/api/settings/popup_title")
        assert response.status_code == 404
        assert "error" in response.get_json()

    def test_storage_failure_500(self, http, storage):
        storage.get_setting.side_effect = RuntimeError("DATABASE_URL environment variable not set")
        response = http.get("/api/settings/popup_title")
        assert response.status_code == 500
        assert response.get_json() == {"error": "Internal server error"}

    def test_all_settings(self, http, storage):
        storage.get_all_settings.return_value = [{"key": "site_url", "value": "https://lichsuviet.edu.vn"}]
        data = http.get("/api/settings").get_json()
        assert data[0]["key"] == "site_url"


class TestPeriods:
    def test_all_periods(self, http, storage):
        storage.get_all_periods.return_value = [PERIOD_ROW]
        data = http.get("/api/periods").get_json()

        assert data == [{
            "id": 1, "name": "Nhà Trần", "slug": "tran", "timeframe": "1225-1400",
            "description": "Ba lần kháng chiến chống Nguyên Mông", "icon": "crown",
            "sortOrder": 3, "isShow": True,
        }]
        storage.get_all_periods.assert_called_once_with(visible_only=False)

    def test_visible_periods(self, http, storage):
        storage.get_all_periods.return_value = []
        http.get("/api/periods?visible=true")
        storage.get_all_periods.assert_called_once_with(visible_only=True)

    def test_period_by_slug_404(self, http, storage):
        storage.get_period_by_slug.return_value = None
        assert http.get("/api/periods/slug/nha-ho").status_code == 404

    def test_period_by_id(self, http, storage):
        storage.get_period_by_id.return_value = PERIOD_ROW
        assert http.get("/api/periods/1").get_json()["slug"] == "tran"
        storage.get_period_by_id.assert_called_once_with(1)


class TestEvents:
    def test_all_events_camel_case(self, http, storage):
        storage.get_all_events.return_value = [EVENT_ROW]
        event = http.get("/api/events").get_json()[0]

        assert event["periodId"] == 1
        assert event["imageUrl"] == "/uploads/bach-dang.webp"
        assert event["eventTypes"] == [
            {"id": 1, "name": "Chiến tranh", "slug": "chien-tranh", "color": "#C62828"}
        ]

    def test_event_not_found(self, http, storage):
        storage.get_event_by_id.return_value = None
        assert http.get("/api/events/404").status_code == 404

    def test_events_by_period_slug_unknown_is_empty(self, http, storage):
        storage.get_events_by_period_slug.return_value = []
        response = http.get("/api/events/period-slug/nha-ho")
        assert response.status_code == 200
        assert response.get_json() == []

    def test_events_by_period(self, http, storage):
        storage.get_events_by_period.return_value = [EVENT_ROW]
        assert len(http.get("/api/events/period/1").get_json()) == 1
        storage.get_events_by_period.assert_called_once_with(1)

    def test_event_types(self, http, storage):
        storage.get_all_event_types.return_value = [{"id": 2, "name": "Văn hóa", "slug": "van-hoa", "color": None}]
        assert http.get("/api/event-types").get_json()[0]["slug"] == "van-hoa"


class TestSearch:
    def test_search_passes_filters(self, http, storage):
        storage.search.return_value = {"periods": [PERIOD_ROW], "events": [EVENT_ROW], "event_types": []}
        data = http.get("/api/search", query_string={
            "term": "Bạch Đằng", "period": "tran", "eventType": "chien-tranh",
        }).get_json()

        storage.search.assert_called_once_with(
            term="Bạch Đằng", period_slug="tran", event_type_slug="chien-tranh"
        )
        assert data["periods"][0]["slug"] == "tran"
        assert data["events"][0]["id"] == 10
        assert data["eventTypes"] == []

    def test_search_without_filters(self, http, storage):
        storage.search.return_value = {"periods": [], "events": [], "event_types": []}
        http.get("/api/search")
        storage.search.assert_called_once_with(term=None, period_slug=None, event_type_slug=None)


FIGURE_ROW = {
    "id": 5, "name": "Trần Hưng Đạo", "slug": "tran-hung-dao", "period_id": 1,
    "period_text": "Nhà Trần", "lifespan": "1228-1300",
    "description": "Quốc công tiết chế", "detailed_description": None,
    "image_url": "/uploads/figures/thd.webp", "achievements": ["Ba lần đánh thắng Nguyên Mông"],
    "sort_order": 0,
}

SITE_ROW = {
    "id": 7, "name": "Cột cờ Hà Nội", "slug": "cot-co-ha-noi", "location": "Hà Nội",
    "address": "28A Điện Biên Phủ", "description": "Di tích thời Nguyễn",
    "detailed_description": None, "image_url": None, "map_url": None,
    "year_built": "1812", "period_id": 2, "related_event_id": None, "sort_order": 1,
}

NEWS_ROW = {
    "id": 3, "title": "Triển lãm cổ vật", "slug": "trien-lam-co-vat", "summary": "Tóm tắt",
    "content": "<p>Nội dung</p>", "image_url": None, "published": True, "is_featured": False,
    "view_count": 12, "period_id": 1, "event_id": None, "historical_figure_id": None,
    "historical_site_id": None, "event_type_id": None,
    "created_at": datetime(2026, 2, 1, 7, 0), "updated_at": datetime(2026, 2, 1, 7, 0),
}


class TestHistoricalFigures:
    def test_all_figures(self, http, storage):
        storage.get_all_historical_figures.return_value = [FIGURE_ROW]
        figure = http.get("/api/historical-figures").get_json()[0]

        assert figure["slug"] == "tran-hung-dao"
        assert figure["periodId"] == 1
        assert figure["period"] == "Nhà Trần"
        assert figure["achievements"] == ["Ba lần đánh thắng Nguyên Mông"]

    def test_by_id(self, http, storage):
        storage.get_historical_figure_by_id.return_value = FIGURE_ROW
        assert http.get("/api/historical-figures/5").get_json()["name"] == "Trần Hưng Đạo"
        storage.get_historical_figure_by_id.assert_called_once_with(5)

    def test_by_id_404(self, http, storage):
        storage.get_historical_figure_by_id.return_value = None
        response = http.get("/api/historical-figures/99")
        assert response.status_code == 404
        assert response.get_json() == {"error": "Historical figure not found"}

    def test_by_slug(self, http, storage):
        storage.get_historical_figure_by_slug.return_value = FIGURE_ROW
        assert http.get("/api/historical-figures/slug/tran-hung-dao").status_code == 200
        storage.get_historical_figure_by_slug.assert_called_once_with("tran-hung-dao")

    def test_by_slug_404(self, http, storage):
        storage.get_historical_figure_by_slug.return_value = None
        assert http.get("/api/historical-figures/slug/khong-co").status_code == 404

    def test_by_period(self, http, storage):
        storage.get_historical_figures_by_period.return_value = [FIGURE_ROW]
        assert len(http.get("/api/historical-figures/period/1").get_json()) == 1
        storage.get_historical_figures_by_period.assert_called_once_with(1)

    def test_by_period_slug(self, http, storage):
        storage.get_historical_figures_by_period_slug.return_value = []
        assert http.get("/api/historical-figures/period-slug/tran").get_json() == []
        storage.get_historical_figures_by_period_slug.assert_called_once_with("tran")

    def test_missing_achievements_is_empty_list(self, http, storage):
        storage.get_historical_figure_by_id.return_value = dict(FIGURE_ROW, achievements=None)
        assert http.get("/api/historical-figures/5").get_json()["achievements"] == []


class TestHistoricalSites:
    def test_all_sites(self, http, storage):
        storage.get_all_historical_sites.return_value = [SITE_ROW]
        site = http.get("/api/historical-sites").get_json()[0]

        assert site["yearBuilt"] == "1812"
        assert site["location"] == "Hà Nội"
        assert site["periodId"] == 2

    def test_by_id(self, http, storage):
        storage.get_historical_site_by_id.return_value = SITE_ROW
        assert http.get("/api/historical-sites/7").get_json()["slug"] == "cot-co-ha-noi"
        storage.get_historical_site_by_id.assert_called_once_with(7)

    def test_by_id_404(self, http, storage):
        storage.get_historical_site_by_id.return_value = None
        response = http.get("/api/historical-sites/99")
        assert response.status_code == 404
        assert response.get_json() == {"error": "Historical site not found"}

    def test_by_slug(self, http, storage):
        storage.get_historical_site_by_slug.return_value = SITE_ROW
        assert http.get("/api/historical-sites/slug/cot-co-ha-noi").get_json()["id"] == 7

    def test_by_period(self, http, storage):
        storage.get_historical_sites_by_period.return_value = [SITE_ROW]
        assert len(http.get("/api/periods/2/historical-sites").get_json()) == 1
        storage.get_historical_sites_by_period.assert_called_once_with(2)

    def test_by_period_slug(self, http, storage):
        storage.get_historical_sites_by_period_slug.return_value = [SITE_ROW]
        assert len(http.get("/api/periods-slug/le/historical-sites").get_json()) == 1
        storage.get_historical_sites_by_period_slug.assert_called_once_with("le")

    def test_storage_failure_500(self, http, storage):
        storage.get_all_historical_sites.side_effect = RuntimeError("down")
        assert http.get("/api/historical-sites").status_code == 500


class TestNews:
    def test_list_with_pagination(self, http, storage):
        storage.get_news_list.return_value = {"data": [NEWS_ROW], "total": 21}
        data = http.get("/api/news", query_string={"limit": 10, "page": 2}).get_json()

        assert data["data"][0]["slug"] == "trien-lam-co-vat"
        assert data["data"][0]["createdAt"] == "2026-02-01T07:00:00"
        assert data["pagination"] == {"total": 21, "page": 2, "limit": 10, "totalPages": 3}
        storage.get_news_list.assert_called_once_with(
            limit=10, page=2, published_only=True, filters={}
        )

    def test_list_filters(self, http, storage):
        storage.get_news_list.return_value = {"data": [], "total": 0}
        data = http.get("/api/news", query_string={
            "periodId": 1, "historicalFigureId": 5, "publishedOnly": "false",
        }).get_json()

        assert data["pagination"]["totalPages"] == 0
        storage.get_news_list.assert_called_once_with(
            limit=10, page=1, published_only=False,
            filters={"period_id": 1, "historical_figure_id": 5},
        )

    def test_list_bad_paging_values_clamped(self, http, storage):
        storage.get_news_list.return_value = {"data": [], "total": 0}
        http.get("/api/news", query_string={"limit": 0, "page": -3})
        kwargs = storage.get_news_list.call_args.kwargs
        assert kwargs["limit"] == 1
        assert kwargs["page"] == 1

    def test_by_slug_counts_view(self, http, storage):
        storage.get_news_by_slug.return_value = NEWS_ROW
        data = http.get("/api/news/trien-lam-co-vat").get_json()

        assert data["success"] is True
        assert data["data"]["id"] == 3
        storage.increment_news_view_count.assert_called_once_with(3)

    def test_by_slug_404(self, http, storage):
        storage.get_news_by_slug.return_value = None
        response = http.get("/api/news/khong-co")
        assert response.status_code == 404
        assert response.get_json()["success"] is False
        storage.increment_news_view_count.assert_not_called()

    def test_by_id(self, http, storage):
        storage.get_news_by_id.return_value = NEWS_ROW
        data = http.get("/api/news/3").get_json()
        assert data["data"]["title"] == "Triển lãm cổ vật"
        storage.get_news_by_id.assert_called_once_with(3)
        storage.get_news_by_slug.assert_not_called()

    def test_by_id_404(self, http, storage):
        storage.get_news_by_id.return_value = None
        assert http.get("/api/news/404").status_code == 404

    def test_related(self, http, storage):
        storage.get_related_news.return_value = [NEWS_ROW]
        data = http.get("/api/news/9/related").get_json()
        assert data["data"][0]["id"] == 3
        storage.get_related_news.assert_called_once_with(9, limit=4)

    def test_list_failure_500(self, http, storage):
        storage.get_news_list.side_effect = RuntimeError("down")
        response = http.get("/api/news")
        assert response.status_code == 500
        assert response.get_json()["success"] is False


class TestStats:
    def test_counters(self, http, storage):
        storage.get_counter.side_effect = lambda name: {"visit_count": 120, "search_count": 8}[name]
        assert http.get("/api/stats").get_json() == {"visitCount": 120, "searchCount": 8}

    def test_search_counts_itself(self, http, storage):
        storage.search.return_value = {"periods": [], "events": [], "event_types": []}
        http.get("/api/search")
        storage.increment_counter.assert_called_once_with("search_count")

    def test_count_page_visit_swallows_storage_errors(self, storage):
        storage.increment_counter.side_effect = RuntimeError("down")
        routes_mod.count_page_visit()
        storage.increment_counter.assert_called_once_with("visit_count")


class TestFeedback:
    BODY = {"name": "Nguyễn Văn A", "phone": "0901234567", "email": "a@example.com",
            "content": "Trang rất hữu ích"}

    @pytest.fixture()
    def notify(self, monkeypatch):
        mock = MagicMock(return_value=True)
        monkeypatch.setattr(routes_mod, "notify_feedback", mock)
        return mock

    def test_created(self, http, storage, notify):
        storage.create_feedback.return_value = dict(self.BODY, id=1, resolved=False, created_at=None)
        response = http.post("/api/feedback", json=self.BODY)

        assert response.status_code == 201
        data = response.get_json()
        assert data["success"] is True
        assert data["data"]["id"] == 1
        storage.create_feedback.assert_called_once_with(**self.BODY)
        notify.assert_called_once()

    @pytest.mark.parametrize("missing", ["name", "phone", "email", "content"])
    def test_missing_field_400(self, http, storage, notify, missing):
        body = dict(self.BODY, **{missing: "  "})
        response = http.post("/api/feedback", json=body)

        assert response.status_code == 400
        assert response.get_json()["success"] is False
        storage.create_feedback.assert_not_called()
        notify.assert_not_called()

    def test_no_body_400(self, http, storage, notify):
        assert http.post("/api/feedback").status_code == 400

    def test_storage_failure_500(self, http, storage, notify):
        storage.create_feedback.side_effect = RuntimeError("down")
        response = http.post("/api/feedback", json=self.BODY)
        assert response.status_code == 500
        notify.assert_not_called()
