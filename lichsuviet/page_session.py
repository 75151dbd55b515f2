"""
Lich Su Viet - Page Session Module

JSON-based state for one open home page, designed for the Socket.IO channel.
Keeps popup and timeline logic out of the transport entirely.

All methods return structured messages that the browser renders as it wishes.
Messages produced later by timers collect in the outbox until drain().
"""

import logging
from datetime import datetime
from typing import Optional, Dict, Any, List, Callable

from lichsuviet.api_client import PortalClient
from lichsuviet.config import POPUP_SHOW_DELAY_SECONDS, POPUP_HIDE_DELAY_SECONDS
from lichsuviet.popup import DismissalGate, Scheduler, utc_now
from lichsuviet.storage_backends import MirroredClientStorage
from lichsuviet.timeline import (
    TimelineSelector, NavigationDelegate, CallbackNavigator, ScrollNavigator
)

logger = logging.getLogger(__name__)


# =============================================================================
# MESSAGE TYPES
# =============================================================================

class MessageType:
    """Types of messages the session can emit"""
    # Session
    READY = "ready"
    STATE = "state"
    ERROR = "error"

    # Timeline
    TIMELINE = "timeline"
    PERIOD_SELECTED = "period_selected"   # Parent page handles navigation
    SCROLL_TO = "scroll_to"               # Built-in smooth scroll

    # Popup
    POPUP_SCHEDULED = "popup_scheduled"
    POPUP_SHOW = "popup_show"
    POPUP_HIDE = "popup_hide"
    POPUP_REMOVE = "popup_remove"

    # Browser localStorage writes
    STORAGE_SET = "storage_set"
    STORAGE_REMOVE = "storage_remove"


def emit(msg_type: str, data: Dict[str, Any] = None) -> Dict[str, Any]:
    """Create a standardized message"""
    return {
        "type": msg_type,
        "data": data or {},
        "timestamp": datetime.now().isoformat()
    }


# =============================================================================
# PAGE SESSION
# =============================================================================

class PageSession:
    """
    One page view: the popup gate, the timeline selector and the browser's
    localStorage mirror.

    With delegate_navigation the browser's own page handles period selection
    (a period_selected message); otherwise the session asks it to scroll.
    """

    def __init__(self, client: PortalClient, schedule: Scheduler,
                 storage_snapshot: Optional[Dict[str, str]] = None,
                 active_period_slug: Optional[str] = None,
                 delegate_navigation: bool = False,
                 clock: Callable[[], datetime] = utc_now):
        self.client = client
        self._outbox: List[Dict[str, Any]] = []
        self.started = False

        self.storage = MirroredClientStorage(storage_snapshot, on_change=self._storage_changed)
        self.gate = DismissalGate(self.storage, schedule, clock=clock, listener=self._popup_event)

        navigator: NavigationDelegate
        if delegate_navigation:
            navigator = CallbackNavigator(self._period_selected)
        else:
            navigator = ScrollNavigator(self._scroll_to)
        self.timeline = TimelineSelector(navigator, active_period_slug)

    # ==================== Outbox ====================

    def _push(self, msg_type: str, data: Dict[str, Any] = None):
        self._outbox.append(emit(msg_type, data))

    def drain(self) -> List[Dict[str, Any]]:
        """Take every message queued so far"""
        messages, self._outbox = self._outbox, []
        return messages

    # ==================== Callbacks ====================

    def _storage_changed(self, key: str, value: Optional[str]):
        if value is None:
            self._push(MessageType.STORAGE_REMOVE, {"key": key})
        else:
            self._push(MessageType.STORAGE_SET, {"key": key, "value": value})

    def _popup_event(self, event: str):
        if event == "scheduled":
            self._push(MessageType.POPUP_SCHEDULED, {"delayMs": int(POPUP_SHOW_DELAY_SECONDS * 1000)})
        elif event == "show":
            self._push(MessageType.POPUP_SHOW, self.gate.settings.to_dict())
        elif event == "hide":
            self._push(MessageType.POPUP_HIDE, {"removeAfterMs": int(POPUP_HIDE_DELAY_SECONDS * 1000)})
        elif event == "remove":
            self._push(MessageType.POPUP_REMOVE)

    def _period_selected(self, slug: str):
        self._push(MessageType.PERIOD_SELECTED, {"slug": slug})

    def _scroll_to(self, anchor: str, offset: int):
        self._push(MessageType.SCROLL_TO, {
            "anchor": anchor,
            "offset": offset,
            "behavior": "smooth",
        })

    def _push_timeline(self):
        self._push(MessageType.TIMELINE, self.timeline.to_dict())

    # ==================== Actions ====================

    def start(self) -> List[Dict[str, Any]]:
        """Load timeline data and resolve the popup. Runs once per session."""
        if self.started:
            return self.drain()
        self.started = True
        self._push(MessageType.READY)

        try:
            periods, events = self.client.fetch_timeline()
            self.timeline.load(periods, events)
        except Exception as e:
            # Leave the timeline pending; the page keeps its loading state
            logger.error(f"Timeline fetch error: {e}")
        self._push_timeline()

        self.gate.resolve(self.client.fetch_popup_settings())
        return self.drain()

    def select_period(self, slug: str) -> List[Dict[str, Any]]:
        self.timeline.select_period(slug)
        self._push_timeline()
        return self.drain()

    def previous_period(self) -> List[Dict[str, Any]]:
        if self.timeline.previous_period() is not None:
            self._push_timeline()
        return self.drain()

    def next_period(self) -> List[Dict[str, Any]]:
        if self.timeline.next_period() is not None:
            self._push_timeline()
        return self.drain()

    def set_active_period(self, slug: Optional[str]) -> List[Dict[str, Any]]:
        """The parent page changed its active period"""
        if self.timeline.sync_external_slug(slug):
            self._push_timeline()
        return self.drain()

    def close_popup(self) -> List[Dict[str, Any]]:
        self.gate.close()
        return self.drain()

    def get_state(self) -> Dict[str, Any]:
        return {
            "popup": {
                "state": self.gate.state.value,
                "open": self.gate.is_open,
                "rendered": self.gate.is_rendered,
                "settings": self.gate.settings.to_dict() if self.gate.settings else None,
            },
            "timeline": self.timeline.to_dict(),
            "storage": self.storage.snapshot(),
        }

    def teardown(self):
        self.gate.teardown()
        self._outbox = []
