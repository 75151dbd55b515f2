"""Shared test fixtures for lichsuviet tests."""

from datetime import datetime, timedelta, timezone

import pytest
from flask import Flask

from lichsuviet.models import Period, Event, EventType, PopupSettings
from lichsuviet.routes import api


class ManualScheduler:
    """Records scheduled timers; tests fire them explicitly."""

    def __init__(self):
        self.pending = []

    def __call__(self, delay, callback):
        self.pending.append((delay, callback))

    @property
    def delays(self):
        return [delay for delay, _ in self.pending]

    def run_next(self):
        delay, callback = self.pending.pop(0)
        callback()
        return delay

    def run_all(self):
        while self.pending:
            self.run_next()


class FixedClock:
    """Clock that only moves when told to."""

    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture()
def scheduler():
    return ManualScheduler()


@pytest.fixture()
def clock():
    return FixedClock(datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc))


@pytest.fixture()
def popup_settings():
    return PopupSettings(enabled=True, content="<p>Hi</p>", title="Thông báo", cooldown_hours=24)


@pytest.fixture()
def periods():
    return [
        Period(id=1, slug="tran", name="Nhà Trần", timeframe="1225-1400",
               description="Triều đại ba lần đánh thắng quân Nguyên Mông."),
        Period(id=2, slug="le", name="Nhà Hậu Lê", timeframe="1428-1789",
               description="Triều đại dài nhất lịch sử phong kiến Việt Nam."),
    ]


@pytest.fixture()
def events():
    war = EventType(id=1, name="Chiến tranh", slug="chien-tranh", color="#C62828")
    return [
        Event(id=10, title="Chiến thắng Bạch Đằng", period_id=1, year="1288", event_types=[war]),
        Event(id=11, title="Lê Lợi lên ngôi", period_id=2, year="1428"),
    ]


@pytest.fixture()
def app():
    """Flask app with only the REST blueprint registered."""
    app = Flask(__name__)
    app.register_blueprint(api)
    app.config['TESTING'] = True
    return app


@pytest.fixture()
def http(app):
    return app.test_client()
