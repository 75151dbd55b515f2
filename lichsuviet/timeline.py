"""
Lich Su Viet - Timeline Module

Period selection for the home page timeline:
- Which period is active, and its events
- Previous/next navigation with disabled ends
- Navigation delegates (parent callback or built-in scroll)
- Per-period preview blocks for the horizontal layout
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, List, Dict, Any, Callable

from lichsuviet.config import (
    TIMELINE_HEADER_OFFSET, TIMELINE_ANCHOR_PREFIX,
    TIMELINE_PREVIEW_EVENTS, PERIOD_DESCRIPTION_PREVIEW_CHARS
)
from lichsuviet.models import Period, Event


class LoadStatus(Enum):
    """Whether timeline data has arrived, and whether there is any"""
    PENDING = "pending"   # Nothing supplied yet
    EMPTY = "empty"       # Supplied, but no periods or no events
    READY = "ready"


def anchor_for(slug: str) -> str:
    """DOM id of a period section, e.g. period-nha-tran"""
    return f"{TIMELINE_ANCHOR_PREFIX}{slug}"


def truncate_description(text: str, limit: int = PERIOD_DESCRIPTION_PREVIEW_CHARS) -> str:
    if not text or len(text) <= limit:
        return text or ""
    return f"{text[:limit]}..."


# =============================================================================
# NAVIGATION DELEGATES
# =============================================================================

class NavigationDelegate(ABC):
    """What happens on the page after a period is selected"""

    @abstractmethod
    def period_selected(self, slug: str):
        pass


class CallbackNavigator(NavigationDelegate):
    """Hands the selection to a parent-supplied on_period_select(slug)"""

    def __init__(self, on_period_select: Callable[[str], None]):
        self.on_period_select = on_period_select

    def period_selected(self, slug: str):
        self.on_period_select(slug)


class ScrollNavigator(NavigationDelegate):
    """
    Default behaviour with no parent handler: smooth-scroll to the period's
    anchor, leaving room for the fixed header.
    """

    def __init__(self, scroll_to: Callable[[str, int], None],
                 offset: int = TIMELINE_HEADER_OFFSET):
        self.scroll_to = scroll_to
        self.offset = offset

    def period_selected(self, slug: str):
        self.scroll_to(anchor_for(slug), self.offset)


# =============================================================================
# PERIOD GROUPS
# =============================================================================

@dataclass
class PeriodGroup:
    """A period with its own events, in display order"""
    period: Period
    events: List[Event] = field(default_factory=list)

    @property
    def preview_events(self) -> List[Event]:
        return self.events[:TIMELINE_PREVIEW_EVENTS]

    @property
    def has_more(self) -> bool:
        return len(self.events) > TIMELINE_PREVIEW_EVENTS

    def to_dict(self, active: bool = False) -> Dict[str, Any]:
        return {
            "period": self.period.to_dict(),
            "anchor": anchor_for(self.period.slug),
            "url": self.period.url,
            "active": active,
            "descriptionPreview": truncate_description(self.period.description),
            "eventCount": len(self.events),
            "events": [dict(e.to_dict(), url=e.url) for e in self.preview_events],
            "hasMore": self.has_more,
        }


# =============================================================================
# TIMELINE SELECTOR
# =============================================================================

class TimelineSelector:
    """
    Tracks the active period and derives everything the timeline shows.

    The active slug starts from the external value and follows it only when
    that value changes; user selections in between are kept. When nothing
    matches, the first period is treated as active.
    """

    def __init__(self, navigator: NavigationDelegate,
                 active_period_slug: Optional[str] = None):
        self.navigator = navigator
        self.periods: List[Period] = []
        self.events: List[Event] = []
        self.status = LoadStatus.PENDING
        self.active_period_slug = active_period_slug
        self._external_slug = active_period_slug

    def load(self, periods: List[Period], events: List[Event]) -> LoadStatus:
        """Supply the fetched collections. Period order is kept as given."""
        self.periods = list(periods)
        self.events = list(events)
        if not self.periods or not self.events:
            self.status = LoadStatus.EMPTY
        else:
            self.status = LoadStatus.READY
        return self.status

    def sync_external_slug(self, slug: Optional[str]) -> bool:
        """
        Apply the parent's active period. Repeating the same value does not
        undo a selection the user made since; returns True when applied.
        """
        if slug == self._external_slug:
            return False
        self._external_slug = slug
        if not slug:
            return False
        self.active_period_slug = slug
        return True

    # ==================== Derived state ====================

    @property
    def active_period(self) -> Optional[Period]:
        for period in self.periods:
            if period.slug == self.active_period_slug:
                return period
        return self.periods[0] if self.periods else None

    @property
    def active_index(self) -> int:
        """Index of the active period, -1 while there are no periods"""
        active = self.active_period
        if active is None:
            return -1
        return self.periods.index(active)

    def events_for(self, period: Period) -> List[Event]:
        return [e for e in self.events if e.period_id == period.id]

    @property
    def active_period_events(self) -> List[Event]:
        active = self.active_period
        if active is None:
            return []
        return self.events_for(active)

    def period_groups(self) -> List[PeriodGroup]:
        """Every period with its events. Events with no matching period are left out."""
        return [PeriodGroup(period=p, events=self.events_for(p)) for p in self.periods]

    @property
    def can_go_previous(self) -> bool:
        return self.active_index > 0

    @property
    def can_go_next(self) -> bool:
        index = self.active_index
        return index != -1 and index < len(self.periods) - 1

    # ==================== Actions ====================

    def select_period(self, slug: str):
        self.active_period_slug = slug
        self.navigator.period_selected(slug)

    def previous_period(self) -> Optional[str]:
        """Select the period before the active one; None at the first period."""
        if not self.can_go_previous:
            return None
        slug = self.periods[self.active_index - 1].slug
        self.select_period(slug)
        return slug

    def next_period(self) -> Optional[str]:
        """Select the period after the active one; None at the last period."""
        if not self.can_go_next:
            return None
        slug = self.periods[self.active_index + 1].slug
        self.select_period(slug)
        return slug

    def to_dict(self) -> Dict[str, Any]:
        active = self.active_period
        return {
            "status": self.status.value,
            "activePeriodSlug": active.slug if active else None,
            "activeIndex": self.active_index,
            "canGoPrevious": self.can_go_previous,
            "canGoNext": self.can_go_next,
            "activePeriodEvents": [dict(e.to_dict(), url=e.url) for e in self.active_period_events],
            "groups": [
                g.to_dict(active=(active is not None and g.period.id == active.id))
                for g in self.period_groups()
            ],
        }
