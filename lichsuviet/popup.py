"""
Lich Su Viet - Popup Notification Module

Handles the home page notification popup:
- Show/suppress decision from settings and the last dismissal
- Delayed appearance once the page has settled
- Dismissal recording and the fade-out before removal
"""

import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Callable

from lichsuviet.config import (
    POPUP_DISMISSED_KEY, POPUP_SHOW_DELAY_SECONDS, POPUP_HIDE_DELAY_SECONDS
)
from lichsuviet.models import PopupSettings
from lichsuviet.storage_backends import ClientStorage

logger = logging.getLogger(__name__)

# schedule(delay_seconds, callback)
Scheduler = Callable[[float, Callable[[], None]], None]


class PopupState(Enum):
    """Where the popup is in its lifecycle for this page view"""
    UNRESOLVED = "unresolved"   # Settings not in yet
    SUPPRESSED = "suppressed"   # Will not show this page view
    SCHEDULED = "scheduled"     # Waiting out the show delay
    VISIBLE = "visible"         # On screen
    DISMISSED = "dismissed"     # Closed by the user, record written


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def parse_dismissed_at(raw: Optional[str]) -> Optional[datetime]:
    """Parse a stored ISO timestamp. Unreadable values count as no record."""
    if not raw:
        return None
    try:
        parsed = datetime.fromisoformat(raw.replace('Z', '+00:00'))
    except (ValueError, AttributeError):
        logger.warning(f"Ignoring unreadable popup dismissal record: {raw!r}")
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def hours_since(then: datetime, now: datetime) -> float:
    return (now - then).total_seconds() / 3600


def should_show_popup(settings: Optional[PopupSettings],
                      dismissed_at: Optional[datetime],
                      now: datetime) -> bool:
    """
    True when the popup is switched on, has content, and the cooldown since
    the last dismissal has fully elapsed. Elapsed == cooldown counts as elapsed.
    """
    if settings is None or not settings.enabled or not settings.content:
        return False
    if dismissed_at is None:
        return True
    return hours_since(dismissed_at, now) >= settings.cooldown_hours


class DismissalGate:
    """
    Decides once per page view whether the popup appears, and records the
    user closing it.

    State flow:
        UNRESOLVED -> SUPPRESSED
        UNRESOLVED -> SCHEDULED -> VISIBLE -> DISMISSED

    Timers go through the injected scheduler and are never cancelled. After
    teardown() any timer still pending fires into a no-op.

    listener(event) is called with "scheduled", "show", "hide" and "remove".
    """

    def __init__(self, storage: ClientStorage, schedule: Scheduler,
                 clock: Callable[[], datetime] = utc_now,
                 listener: Optional[Callable[[str], None]] = None):
        self.storage = storage
        self.schedule = schedule
        self.clock = clock
        self.listener = listener

        self.state = PopupState.UNRESOLVED
        self.settings: Optional[PopupSettings] = None
        self.is_open = False        # Drawn and not fading out
        self.is_rendered = False    # Still in the render tree
        self._mounted = True

        # Read once; later dismissals in this page view do not re-gate
        self.dismissed_at = parse_dismissed_at(storage.get(POPUP_DISMISSED_KEY))

    def _notify(self, event: str):
        if self.listener:
            self.listener(event)

    def resolve(self, settings: Optional[PopupSettings]) -> PopupState:
        """
        Take the fetched settings (None when fetching failed) and decide.
        Only the first call has any effect.
        """
        if self.state != PopupState.UNRESOLVED:
            return self.state

        self.settings = settings
        if not should_show_popup(settings, self.dismissed_at, self.clock()):
            self.state = PopupState.SUPPRESSED
            return self.state

        self.state = PopupState.SCHEDULED
        self.is_rendered = True
        self._notify("scheduled")
        self.schedule(POPUP_SHOW_DELAY_SECONDS, self._show)
        return self.state

    def _show(self):
        if not self._mounted or self.state != PopupState.SCHEDULED:
            return
        self.state = PopupState.VISIBLE
        self.is_open = True
        self._notify("show")

    def close(self) -> Optional[datetime]:
        """
        Record the dismissal and start the fade-out. Safe to call repeatedly;
        the last close wins. A popup that was never scheduled cannot be
        closed, so nothing is written and None is returned.
        """
        if self.state in (PopupState.UNRESOLVED, PopupState.SUPPRESSED):
            return None

        now = self.clock()
        self.storage.set(POPUP_DISMISSED_KEY, now.isoformat())

        self.is_open = False
        self.state = PopupState.DISMISSED
        self._notify("hide")
        self.schedule(POPUP_HIDE_DELAY_SECONDS, self._remove)
        return now

    def _remove(self):
        if not self._mounted or self.is_open:
            return
        if self.is_rendered:
            self.is_rendered = False
            self._notify("remove")

    def teardown(self):
        self._mounted = False
