"""
Lich Su Viet - Data Models

Periods, events and event types as the browsing pages see them, plus the
popup settings bundle. Each class converts to and from the camelCase JSON
shape served under /api.
"""

import math
from dataclasses import dataclass, field
from typing import Optional, List, Dict, Any

from lichsuviet.config import (
    DEFAULT_POPUP_COOLDOWN_HOURS, DEFAULT_POPUP_TITLE,
    POPUP_ENABLED_KEY, POPUP_CONTENT_KEY, POPUP_TITLE_KEY, POPUP_DURATION_KEY,
    EVENT_URL_PREFIX, PERIOD_URL_PREFIX,
)
from lichsuviet.slugs import slugify


@dataclass
class EventType:
    """A tag such as "Chiến tranh" or "Văn hóa" attached to events"""
    id: int
    name: str
    slug: str = ""
    color: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "slug": self.slug,
            "color": self.color,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EventType":
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            slug=data.get("slug") or "",
            color=data.get("color"),
        )


@dataclass
class Period:
    """A named historical era. Display order follows sort_order."""
    id: int
    slug: str
    name: str
    timeframe: str = ""
    description: str = ""
    icon: str = ""
    sort_order: int = 0
    is_show: bool = True

    @property
    def url(self) -> str:
        return f"{PERIOD_URL_PREFIX}/{self.slug}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "slug": self.slug,
            "name": self.name,
            "timeframe": self.timeframe,
            "description": self.description,
            "icon": self.icon,
            "sortOrder": self.sort_order,
            "isShow": self.is_show,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Period":
        return cls(
            id=data["id"],
            slug=data["slug"],
            name=data.get("name", ""),
            timeframe=data.get("timeframe") or "",
            description=data.get("description") or "",
            icon=data.get("icon") or "",
            sort_order=data.get("sortOrder", 0) or 0,
            is_show=data.get("isShow", True),
        )


@dataclass
class Event:
    """A dated occurrence belonging to exactly one period"""
    id: int
    title: str
    period_id: int
    year: str = ""
    description: str = ""
    image_url: Optional[str] = None
    sort_order: int = 0
    event_types: List[EventType] = field(default_factory=list)

    @property
    def url(self) -> str:
        """Detail page link, e.g. /su-kien/12/chien-thang-bach-dang"""
        return f"{EVENT_URL_PREFIX}/{self.id}/{slugify(self.title)}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "periodId": self.period_id,
            "year": self.year,
            "description": self.description,
            "imageUrl": self.image_url,
            "sortOrder": self.sort_order,
            "eventTypes": [t.to_dict() for t in self.event_types],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Event":
        return cls(
            id=data["id"],
            title=data.get("title", ""),
            period_id=data["periodId"],
            year=str(data.get("year") or ""),
            description=data.get("description") or "",
            image_url=data.get("imageUrl") or None,
            sort_order=data.get("sortOrder", 0) or 0,
            event_types=[EventType.from_dict(t) for t in data.get("eventTypes") or []],
        )


def parse_cooldown_hours(raw: Any) -> float:
    """Cooldown in hours; anything that is not a finite number becomes the default."""
    try:
        hours = float(raw)
    except (TypeError, ValueError):
        return DEFAULT_POPUP_COOLDOWN_HOURS
    if math.isnan(hours) or math.isinf(hours):
        return DEFAULT_POPUP_COOLDOWN_HOURS
    return hours


@dataclass(frozen=True)
class PopupSettings:
    """The four popup settings, read once per page view"""
    enabled: bool
    content: str
    title: str = DEFAULT_POPUP_TITLE
    cooldown_hours: float = DEFAULT_POPUP_COOLDOWN_HOURS

    @classmethod
    def from_values(cls, values: Dict[str, Optional[str]]) -> "PopupSettings":
        """Build from raw setting values keyed by setting key."""
        return cls(
            enabled=values.get(POPUP_ENABLED_KEY) == "true",
            content=values.get(POPUP_CONTENT_KEY) or "",
            title=values.get(POPUP_TITLE_KEY) or DEFAULT_POPUP_TITLE,
            cooldown_hours=parse_cooldown_hours(values.get(POPUP_DURATION_KEY)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "enabled": self.enabled,
            "title": self.title,
            "content": self.content,
            "cooldownHours": self.cooldown_hours,
        }
