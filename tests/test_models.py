"""Tests for data models and slug generation."""

import pytest

from lichsuviet.models import (
    Event, Period, PopupSettings, parse_cooldown_hours
)
from lichsuviet.slugs import slugify


class TestSlugify:
    @pytest.mark.parametrize("title,expected", [
        ("Khởi nghĩa Hai Bà Trưng", "khoi-nghia-hai-ba-trung"),
        ("Đại Việt", "dai-viet"),
        ("Chiến thắng Bạch Đằng (938)", "chien-thang-bach-dang-938"),
        ("  Nhà   Hồ  ", "nha-ho"),
        ("Lý - Trần", "ly-tran"),
        ("", ""),
    ])
    def test_slugify(self, title, expected):
        assert slugify(title) == expected

    def test_none(self):
        assert slugify(None) == ""


class TestParseCooldownHours:
    @pytest.mark.parametrize("raw,expected", [
        ("12", 12.0),
        ("0.5", 0.5),
        ("48", 48.0),
        (None, 24),
        ("", 24),
        ("mot ngay", 24),
        ("nan", 24),
        ("inf", 24),
    ])
    def test_parse(self, raw, expected):
        assert parse_cooldown_hours(raw) == expected


class TestPopupSettings:
    def test_from_values(self):
        settings = PopupSettings.from_values({
            "popup_enabled": "true",
            "popup_notification": "<p>Chào mừng</p>",
            "popup_title": "Tin mới",
            "popup_duration": "6",
        })
        assert settings == PopupSettings(
            enabled=True, content="<p>Chào mừng</p>", title="Tin mới", cooldown_hours=6.0
        )

    @pytest.mark.parametrize("value", ["false", "True", "1", None])
    def test_only_literal_true_enables(self, value):
        assert PopupSettings.from_values({"popup_enabled": value}).enabled is False

    def test_defaults_for_missing_values(self):
        settings = PopupSettings.from_values({})
        assert settings.content == ""
        assert settings.title == "Thông báo"
        assert settings.cooldown_hours == 24

    def test_to_dict(self, popup_settings):
        assert popup_settings.to_dict() == {
            "enabled": True, "title": "Thông báo", "content": "<p>Hi</p>", "cooldownHours": 24,
        }


class TestWireShapes:
    def test_period_from_dict_fills_missing_fields(self):
        period = Period.from_dict({"id": 3, "slug": "ly", "name": "Nhà Lý", "description": None})
        assert period.description == ""
        assert period.sort_order == 0
        assert period.is_show is True
        assert period.url == "/thoi-ky/ly"

    def test_event_from_dict(self):
        event = Event.from_dict({
            "id": 12, "title": "Chiến thắng Bạch Đằng", "periodId": 1, "year": 938,
            "imageUrl": "", "eventTypes": None,
        })
        assert event.year == "938"
        assert event.image_url is None
        assert event.event_types == []
        assert event.url == "/su-kien/12/chien-thang-bach-dang"

    def test_event_to_dict_roundtrip_keys(self, events):
        data = events[0].to_dict()
        assert data["periodId"] == 1
        assert data["eventTypes"][0]["slug"] == "chien-tranh"
        assert Event.from_dict(data) == events[0]
