"""
Database operations for Lich Su Viet.
PostgreSQL access through psycopg2; every query returns plain dict rows.
"""

import logging
from typing import Optional, List, Dict, Any
from contextlib import contextmanager

import psycopg2
from psycopg2.extras import RealDictCursor

from lichsuviet import config

logger = logging.getLogger(__name__)

# Columns linking a news item to the rest of the site
NEWS_FILTER_COLUMNS = (
    'period_id', 'event_id', 'historical_figure_id', 'historical_site_id', 'event_type_id'
)


@contextmanager
def get_db():
    """Get a database connection with automatic cleanup."""
    if not config.DATABASE_URL:
        raise RuntimeError("DATABASE_URL environment variable not set")

    conn = psycopg2.connect(config.DATABASE_URL)
    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def _attach_event_types(cur, events: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Add an event_types list to each event row."""
    if not events:
        return events

    cur.execute("""
        SELECT et.id, et.name, et.slug, et.color, ete.event_id
        FROM event_types et
        JOIN event_to_event_type ete ON ete.event_type_id = et.id
        WHERE ete.event_id = ANY(%s)
        ORDER BY et.name
    """, ([e['id'] for e in events],))

    by_event: Dict[int, List[Dict[str, Any]]] = {}
    for row in cur.fetchall():
        row = dict(row)
        event_id = row.pop('event_id')
        by_event.setdefault(event_id, []).append(row)

    for event in events:
        event['event_types'] = by_event.get(event['id'], [])
    return events


class Storage:
    """Database storage operations."""

    # ==================== Settings ====================

    def get_setting(self, key: str) -> Optional[Dict[str, Any]]:
        """Fetch one setting row by key."""
        with get_db() as conn:
            with conn.cursor(cursor_factory=RealDictCursor) as cur:
                cur.execute(
                    "SELECT * FROM settings WHERE key = %s LIMIT 1",
                    (key,)
                )
                result = cur.fetchone()
                return dict(result) if result else None

    def get_all_settings(self) -> List[Dict[str, Any]]:
        """All settings, grouped by category."""
        with get_db() as conn:
            with conn.cursor(cursor_factory=RealDictCursor) as cur:
                cur.execute("SELECT * FROM settings ORDER BY category, sort_order, key")
                return [dict(row) for row in cur.fetchall()]

    def update_setting(self, key: str, value: str) -> Dict[str, Any]:
        """Set a setting's value, creating the row if needed."""
        with get_db() as conn:
            with conn.cursor(cursor_factory=RealDictCursor) as cur:
                cur.execute("""
                    INSERT INTO settings (key, value, display_name, description, category, input_type, sort_order, updated_at)
                    VALUES (%s, %s, %s, '', 'general', 'text', 0, NOW())
                    ON CONFLICT (key) DO UPDATE SET
                        value = EXCLUDED.value,
                        updated_at = NOW()
                    RETURNING *
                """, (key, value, key))
                return dict(cur.fetchone())

    def initialize_default_settings(self, defaults: List[Dict[str, Any]] = None) -> int:
        """Insert any missing default settings. Returns how many were added."""
        defaults = config.DEFAULT_SETTINGS if defaults is None else defaults
        added = 0
        with get_db() as conn:
            with conn.cursor() as cur:
                for setting in defaults:
                    cur.execute("""
                        INSERT INTO settings (key, value, display_name, description, category, input_type, sort_order)
                        VALUES (%s, %s, %s, %s, %s, %s, %s)
                        ON CONFLICT (key) DO NOTHING
                    """, (
                        setting['key'], setting['value'],
                        setting.get('display_name', setting['key']),
                        setting.get('description', ''),
                        setting.get('category', 'general'),
                        setting.get('input_type', 'text'),
                        setting.get('sort_order', 0)
                    ))
                    added += cur.rowcount
        return added

    # ==================== Periods ====================

    def get_all_periods(self, visible_only: bool = False) -> List[Dict[str, Any]]:
        """Periods in display order, optionally only those shown on the home page."""
        with get_db() as conn:
            with conn.cursor(cursor_factory=RealDictCursor) as cur:
                if visible_only:
                    cur.execute("SELECT * FROM periods WHERE is_show = TRUE ORDER BY sort_order")
                else:
                    cur.execute("SELECT * FROM periods ORDER BY sort_order")
                return [dict(row) for row in cur.fetchall()]

    def get_period_by_id(self, period_id: int) -> Optional[Dict[str, Any]]:
        with get_db() as conn:
            with conn.cursor(cursor_factory=RealDictCursor) as cur:
                cur.execute("SELECT * FROM periods WHERE id = %s LIMIT 1", (period_id,))
                result = cur.fetchone()
                return dict(result) if result else None

    def get_period_by_slug(self, slug: str) -> Optional[Dict[str, Any]]:
        with get_db() as conn:
            with conn.cursor(cursor_factory=RealDictCursor) as cur:
                cur.execute("SELECT * FROM periods WHERE slug = %s LIMIT 1", (slug,))
                result = cur.fetchone()
                return dict(result) if result else None

    # ==================== Events ====================

    def get_all_events(self) -> List[Dict[str, Any]]:
        """All events with their event types."""
        with get_db() as conn:
            with conn.cursor(cursor_factory=RealDictCursor) as cur:
                cur.execute("SELECT * FROM events ORDER BY sort_order")
                events = [dict(row) for row in cur.fetchall()]
                return _attach_event_types(cur, events)

    def get_event_by_id(self, event_id: int) -> Optional[Dict[str, Any]]:
        with get_db() as conn:
            with conn.cursor(cursor_factory=RealDictCursor) as cur:
                cur.execute("SELECT * FROM events WHERE id = %s LIMIT 1", (event_id,))
                result = cur.fetchone()
                if not result:
                    return None
                return _attach_event_types(cur, [dict(result)])[0]

    def get_events_by_period(self, period_id: int) -> List[Dict[str, Any]]:
        with get_db() as conn:
            with conn.cursor(cursor_factory=RealDictCursor) as cur:
                cur.execute(
                    "SELECT * FROM events WHERE period_id = %s ORDER BY sort_order",
                    (period_id,)
                )
                events = [dict(row) for row in cur.fetchall()]
                return _attach_event_types(cur, events)

    def get_events_by_period_slug(self, slug: str) -> List[Dict[str, Any]]:
        """Events of the period with this slug; empty when the slug is unknown."""
        with get_db() as conn:
            with conn.cursor(cursor_factory=RealDictCursor) as cur:
                cur.execute("""
                    SELECT e.* FROM events e
                    JOIN periods p ON p.id = e.period_id
                    WHERE p.slug = %s
                    ORDER BY e.sort_order
                """, (slug,))
                events = [dict(row) for row in cur.fetchall()]
                return _attach_event_types(cur, events)

    # ==================== Event Types ====================

    def get_all_event_types(self) -> List[Dict[str, Any]]:
        with get_db() as conn:
            with conn.cursor(cursor_factory=RealDictCursor) as cur:
                cur.execute("SELECT * FROM event_types ORDER BY name")
                return [dict(row) for row in cur.fetchall()]

    # ==================== Historical Figures ====================

    def get_all_historical_figures(self) -> List[Dict[str, Any]]:
        with get_db() as conn:
            with conn.cursor(cursor_factory=RealDictCursor) as cur:
                cur.execute("SELECT * FROM historical_figures ORDER BY sort_order")
                return [dict(row) for row in cur.fetchall()]

    def get_historical_figure_by_id(self, figure_id: int) -> Optional[Dict[str, Any]]:
        with get_db() as conn:
            with conn.cursor(cursor_factory=RealDictCursor) as cur:
                cur.execute("SELECT * FROM historical_figures WHERE id = %s LIMIT 1", (figure_id,))
                result = cur.fetchone()
                return dict(result) if result else None

    def get_historical_figure_by_slug(self, slug: str) -> Optional[Dict[str, Any]]:
        with get_db() as conn:
            with conn.cursor(cursor_factory=RealDictCursor) as cur:
                cur.execute("SELECT * FROM historical_figures WHERE slug = %s LIMIT 1", (slug,))
                result = cur.fetchone()
                return dict(result) if result else None

    def get_historical_figures_by_period(self, period_id: int) -> List[Dict[str, Any]]:
        with get_db() as conn:
            with conn.cursor(cursor_factory=RealDictCursor) as cur:
                cur.execute(
                    "SELECT * FROM historical_figures WHERE period_id = %s ORDER BY sort_order",
                    (period_id,)
                )
                return [dict(row) for row in cur.fetchall()]

    def get_historical_figures_by_period_slug(self, slug: str) -> List[Dict[str, Any]]:
        """Figures of the period with this slug; empty when the slug is unknown."""
        with get_db() as conn:
            with conn.cursor(cursor_factory=RealDictCursor) as cur:
                cur.execute("""
                    SELECT f.* FROM historical_figures f
                    JOIN periods p ON p.id = f.period_id
                    WHERE p.slug = %s
                    ORDER BY f.sort_order
                """, (slug,))
                return [dict(row) for row in cur.fetchall()]

    # ==================== Historical Sites ====================

    def get_all_historical_sites(self) -> List[Dict[str, Any]]:
        with get_db() as conn:
            with conn.cursor(cursor_factory=RealDictCursor) as cur:
                cur.execute("SELECT * FROM historical_sites ORDER BY sort_order")
                return [dict(row) for row in cur.fetchall()]

    def get_historical_site_by_id(self, site_id: int) -> Optional[Dict[str, Any]]:
        with get_db() as conn:
            with conn.cursor(cursor_factory=RealDictCursor) as cur:
                cur.execute("SELECT * FROM historical_sites WHERE id = %s LIMIT 1", (site_id,))
                result = cur.fetchone()
                return dict(result) if result else None

    def get_historical_site_by_slug(self, slug: str) -> Optional[Dict[str, Any]]:
        with get_db() as conn:
            with conn.cursor(cursor_factory=RealDictCursor) as cur:
                cur.execute("SELECT * FROM historical_sites WHERE slug = %s LIMIT 1", (slug,))
                result = cur.fetchone()
                return dict(result) if result else None

    def get_historical_sites_by_period(self, period_id: int) -> List[Dict[str, Any]]:
        with get_db() as conn:
            with conn.cursor(cursor_factory=RealDictCursor) as cur:
                cur.execute(
                    "SELECT * FROM historical_sites WHERE period_id = %s ORDER BY sort_order",
                    (period_id,)
                )
                return [dict(row) for row in cur.fetchall()]

    def get_historical_sites_by_period_slug(self, slug: str) -> List[Dict[str, Any]]:
        with get_db() as conn:
            with conn.cursor(cursor_factory=RealDictCursor) as cur:
                cur.execute("""
                    SELECT s.* FROM historical_sites s
                    JOIN periods p ON p.id = s.period_id
                    WHERE p.slug = %s
                    ORDER BY s.sort_order
                """, (slug,))
                return [dict(row) for row in cur.fetchall()]

    # ==================== News ====================

    def get_news_list(self, limit: int = 10, page: int = 1, published_only: bool = True,
                      filters: Optional[Dict[str, int]] = None) -> Dict[str, Any]:
        """
        One page of news, newest first.

        filters maps a news column (period_id, event_id, historical_figure_id,
        historical_site_id, event_type_id) to the id it must equal.
        Returns {'data': rows, 'total': count matching the filters}.
        """
        conditions = []
        params: List[Any] = []
        if published_only:
            conditions.append("published = TRUE")
        for column, value in (filters or {}).items():
            if column not in NEWS_FILTER_COLUMNS:
                raise ValueError(f"Unknown news filter: {column}")
            if value:
                conditions.append(f"{column} = %s")
                params.append(value)
        where = f"WHERE {' AND '.join(conditions)}" if conditions else ""

        with get_db() as conn:
            with conn.cursor(cursor_factory=RealDictCursor) as cur:
                cur.execute(f"SELECT COUNT(*) AS total FROM news {where}", params)
                total = cur.fetchone()['total']

                cur.execute(
                    f"SELECT * FROM news {where} ORDER BY created_at DESC LIMIT %s OFFSET %s",
                    params + [limit, (page - 1) * limit]
                )
                return {
                    'data': [dict(row) for row in cur.fetchall()],
                    'total': total,
                }

    def get_news_by_id(self, news_id: int) -> Optional[Dict[str, Any]]:
        with get_db() as conn:
            with conn.cursor(cursor_factory=RealDictCursor) as cur:
                cur.execute("SELECT * FROM news WHERE id = %s LIMIT 1", (news_id,))
                result = cur.fetchone()
                return dict(result) if result else None

    def get_news_by_slug(self, slug: str) -> Optional[Dict[str, Any]]:
        with get_db() as conn:
            with conn.cursor(cursor_factory=RealDictCursor) as cur:
                cur.execute("SELECT * FROM news WHERE slug = %s LIMIT 1", (slug,))
                result = cur.fetchone()
                return dict(result) if result else None

    def increment_news_view_count(self, news_id: int):
        with get_db() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    "UPDATE news SET view_count = view_count + 1 WHERE id = %s",
                    (news_id,)
                )

    def get_related_news(self, news_id: int, limit: int = 4) -> List[Dict[str, Any]]:
        """
        Published news sharing any period, event, figure, site or event type
        with the given item. Items linked to nothing get the latest news.
        """
        source = self.get_news_by_id(news_id)
        if not source:
            return []

        links = [(c, source[c]) for c in NEWS_FILTER_COLUMNS if source.get(c)]
        conditions = ["published = TRUE", "id != %s"]
        params: List[Any] = [news_id]
        if links:
            conditions.append("(" + " OR ".join(f"{c} = %s" for c, _ in links) + ")")
            params.extend(value for _, value in links)

        with get_db() as conn:
            with conn.cursor(cursor_factory=RealDictCursor) as cur:
                cur.execute(
                    f"SELECT * FROM news WHERE {' AND '.join(conditions)} "
                    f"ORDER BY created_at DESC LIMIT %s",
                    params + [limit]
                )
                return [dict(row) for row in cur.fetchall()]

    # ==================== Feedback ====================

    def create_feedback(self, name: str, phone: str, email: str, content: str) -> Dict[str, Any]:
        with get_db() as conn:
            with conn.cursor(cursor_factory=RealDictCursor) as cur:
                cur.execute("""
                    INSERT INTO feedback (name, phone, email, content)
                    VALUES (%s, %s, %s, %s)
                    RETURNING *
                """, (name, phone, email, content))
                return dict(cur.fetchone())

    # ==================== Stats ====================

    def increment_counter(self, name: str):
        """Add one to a site counter such as visit_count or search_count."""
        with get_db() as conn:
            with conn.cursor() as cur:
                cur.execute("""
                    INSERT INTO site_counters (name, value) VALUES (%s, 1)
                    ON CONFLICT (name) DO UPDATE SET value = site_counters.value + 1
                """, (name,))

    def get_counter(self, name: str) -> int:
        with get_db() as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT value FROM site_counters WHERE name = %s", (name,))
                row = cur.fetchone()
                return row[0] if row else 0

    # ==================== Search ====================

    def search(self, term: Optional[str] = None, period_slug: Optional[str] = None,
               event_type_slug: Optional[str] = None) -> Dict[str, List[Dict[str, Any]]]:
        """
        Match periods and events by name/title/description, narrowed by
        period and event type slugs. With no filters everything is returned.
        """
        pattern = f"%{term}%" if term else None

        with get_db() as conn:
            with conn.cursor(cursor_factory=RealDictCursor) as cur:
                cur.execute("SELECT * FROM event_types ORDER BY name")
                event_types = [dict(row) for row in cur.fetchall()]

                period_conditions = []
                period_params: List[Any] = []
                if pattern:
                    period_conditions.append("(name ILIKE %s OR description ILIKE %s)")
                    period_params.extend([pattern, pattern])
                if period_slug:
                    period_conditions.append("slug = %s")
                    period_params.append(period_slug)

                where = f"WHERE {' AND '.join(period_conditions)}" if period_conditions else ""
                cur.execute(f"SELECT * FROM periods {where} ORDER BY sort_order", period_params)
                periods = [dict(row) for row in cur.fetchall()]

                conditions = []
                params: List[Any] = []
                if pattern:
                    conditions.append("(e.title ILIKE %s OR e.description ILIKE %s)")
                    params.extend([pattern, pattern])
                if period_slug:
                    conditions.append("e.period_id = (SELECT id FROM periods WHERE slug = %s)")
                    params.append(period_slug)
                if event_type_slug:
                    conditions.append("""e.id IN (
                        SELECT ete.event_id FROM event_to_event_type ete
                        JOIN event_types et ON et.id = ete.event_type_id
                        WHERE et.slug = %s
                    )""")
                    params.append(event_type_slug)

                where = f"WHERE {' AND '.join(conditions)}" if conditions else ""
                cur.execute(
                    f"SELECT e.* FROM events e {where} ORDER BY e.period_id, e.sort_order",
                    params
                )
                events = _attach_event_types(cur, [dict(row) for row in cur.fetchall()])

        return {
            'periods': periods,
            'events': events,
            'event_types': event_types,
        }


# Global storage instance
storage = Storage()
