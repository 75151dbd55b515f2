"""
Lich Su Viet - API Client Module

Reads settings and timeline data from the portal's read API over HTTP.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import List, Dict, Optional, Tuple, Any

import requests

from lichsuviet.config import API_BASE_URL, REQUEST_TIMEOUT, POPUP_SETTING_KEYS
from lichsuviet.models import Period, Event, PopupSettings

logger = logging.getLogger(__name__)


class PortalAPIError(Exception):
    """Non-OK response from the read API"""

    def __init__(self, path: str, status_code: int):
        super().__init__(f"GET {path} returned {status_code}")
        self.path = path
        self.status_code = status_code


class PortalClient:
    """Fetches portal data from the /api routes"""

    def __init__(self, api_base: str = None, timeout: float = REQUEST_TIMEOUT):
        self.api_base = (api_base or API_BASE_URL).rstrip('/')
        self.timeout = timeout

    def _get(self, path: str, params: Dict[str, Any] = None) -> Any:
        response = requests.get(
            f"{self.api_base}{path}",
            params=params,
            timeout=self.timeout
        )
        if not response.ok:
            raise PortalAPIError(path, response.status_code)
        return response.json()

    # ==================== Settings ====================

    def get_setting(self, key: str) -> Optional[str]:
        """Raw value of one setting. Raises PortalAPIError if it is missing."""
        data = self._get(f"/api/settings/{key}")
        return data.get("value") if data else None

    def fetch_popup_settings(self) -> Optional[PopupSettings]:
        """
        Fetch the four popup settings at once and wait for all of them.
        Any failure means no popup this page view: returns None, no retry.
        """
        try:
            with ThreadPoolExecutor(max_workers=len(POPUP_SETTING_KEYS)) as pool:
                values = dict(zip(POPUP_SETTING_KEYS, pool.map(self.get_setting, POPUP_SETTING_KEYS)))
        except Exception as e:
            logger.error(f"Popup settings fetch error: {e}")
            return None
        return PopupSettings.from_values(values)

    # ==================== Timeline ====================

    def fetch_periods(self, visible_only: bool = False) -> List[Period]:
        params = {"visible": "true"} if visible_only else None
        return [Period.from_dict(p) for p in self._get("/api/periods", params)]

    def fetch_events(self) -> List[Event]:
        return [Event.from_dict(e) for e in self._get("/api/events")]

    def fetch_timeline(self, visible_only: bool = True) -> Tuple[List[Period], List[Event]]:
        """Periods and events together. Errors propagate to the caller."""
        with ThreadPoolExecutor(max_workers=2) as pool:
            periods = pool.submit(self.fetch_periods, visible_only)
            events = pool.submit(self.fetch_events)
            return periods.result(), events.result()
