"""
Initialize database tables for Lich Su Viet.
Run this once to create the required tables in your Postgres database and
seed the default settings.

Usage:
    python -m lichsuviet.init_db
    python -m lichsuviet.init_db set popup_enabled true
"""

import sys

import psycopg2

from lichsuviet import config
from lichsuviet.db import storage

SCHEMA = """
-- Site settings (key/value, edited from the admin settings page)
CREATE TABLE IF NOT EXISTS settings (
    id SERIAL PRIMARY KEY,
    key VARCHAR NOT NULL UNIQUE,
    value TEXT,
    display_name VARCHAR NOT NULL,
    description TEXT DEFAULT '',
    category VARCHAR DEFAULT 'general',
    input_type VARCHAR DEFAULT 'text',
    sort_order INTEGER DEFAULT 0,
    created_at TIMESTAMP DEFAULT NOW(),
    updated_at TIMESTAMP DEFAULT NOW()
);

CREATE INDEX IF NOT EXISTS idx_settings_category ON settings(category);

-- Historical periods
CREATE TABLE IF NOT EXISTS periods (
    id SERIAL PRIMARY KEY,
    name TEXT NOT NULL,
    slug TEXT NOT NULL UNIQUE,
    timeframe TEXT NOT NULL,
    description TEXT NOT NULL,
    icon TEXT NOT NULL DEFAULT '',
    sort_order INTEGER NOT NULL DEFAULT 0,
    is_show BOOLEAN NOT NULL DEFAULT TRUE
);

CREATE INDEX IF NOT EXISTS idx_periods_sort ON periods(sort_order);

-- Historical events
CREATE TABLE IF NOT EXISTS events (
    id SERIAL PRIMARY KEY,
    period_id INTEGER NOT NULL REFERENCES periods(id),
    title TEXT NOT NULL,
    description TEXT NOT NULL,
    detailed_description TEXT,
    year TEXT NOT NULL,
    image_url TEXT,
    sort_order INTEGER NOT NULL DEFAULT 0
);

CREATE INDEX IF NOT EXISTS idx_events_period ON events(period_id);
CREATE INDEX IF NOT EXISTS idx_events_sort ON events(sort_order);

-- Event types (tags)
CREATE TABLE IF NOT EXISTS event_types (
    id SERIAL PRIMARY KEY,
    name TEXT NOT NULL,
    slug TEXT NOT NULL UNIQUE,
    description TEXT,
    color TEXT DEFAULT '#C62828'
);

-- Event <-> event type association
CREATE TABLE IF NOT EXISTS event_to_event_type (
    id SERIAL PRIMARY KEY,
    event_id INTEGER NOT NULL REFERENCES events(id) ON DELETE CASCADE,
    event_type_id INTEGER NOT NULL REFERENCES event_types(id) ON DELETE CASCADE
);

CREATE INDEX IF NOT EXISTS idx_ete_event ON event_to_event_type(event_id);
CREATE INDEX IF NOT EXISTS idx_ete_type ON event_to_event_type(event_type_id);

-- Historical figures
CREATE TABLE IF NOT EXISTS historical_figures (
    id SERIAL PRIMARY KEY,
    name TEXT NOT NULL,
    slug TEXT UNIQUE,
    period_id INTEGER REFERENCES periods(id),
    period_text TEXT,
    lifespan TEXT NOT NULL DEFAULT '',
    description TEXT NOT NULL DEFAULT '',
    detailed_description TEXT,
    image_url TEXT,
    achievements JSONB,
    sort_order INTEGER NOT NULL DEFAULT 0
);

CREATE INDEX IF NOT EXISTS idx_figures_period ON historical_figures(period_id);

-- Historical sites
CREATE TABLE IF NOT EXISTS historical_sites (
    id SERIAL PRIMARY KEY,
    name TEXT NOT NULL,
    slug TEXT UNIQUE,
    location TEXT NOT NULL DEFAULT '',
    address TEXT,
    description TEXT NOT NULL DEFAULT '',
    detailed_description TEXT,
    image_url TEXT,
    map_url TEXT,
    year_built TEXT,
    period_id INTEGER REFERENCES periods(id),
    related_event_id INTEGER REFERENCES events(id) ON DELETE SET NULL,
    sort_order INTEGER NOT NULL DEFAULT 0
);

CREATE INDEX IF NOT EXISTS idx_sites_period ON historical_sites(period_id);

-- News articles, optionally linked to other content
CREATE TABLE IF NOT EXISTS news (
    id SERIAL PRIMARY KEY,
    title TEXT NOT NULL,
    slug TEXT NOT NULL UNIQUE,
    summary TEXT,
    content TEXT NOT NULL DEFAULT '',
    image_url TEXT,
    published BOOLEAN NOT NULL DEFAULT FALSE,
    is_featured BOOLEAN NOT NULL DEFAULT FALSE,
    view_count INTEGER NOT NULL DEFAULT 0,
    period_id INTEGER REFERENCES periods(id) ON DELETE SET NULL,
    event_id INTEGER REFERENCES events(id) ON DELETE SET NULL,
    historical_figure_id INTEGER REFERENCES historical_figures(id) ON DELETE SET NULL,
    historical_site_id INTEGER REFERENCES historical_sites(id) ON DELETE SET NULL,
    event_type_id INTEGER REFERENCES event_types(id) ON DELETE SET NULL,
    created_at TIMESTAMP DEFAULT NOW(),
    updated_at TIMESTAMP DEFAULT NOW()
);

CREATE INDEX IF NOT EXISTS idx_news_created ON news(created_at DESC);

-- Visitor feedback
CREATE TABLE IF NOT EXISTS feedback (
    id SERIAL PRIMARY KEY,
    name TEXT NOT NULL,
    phone TEXT NOT NULL,
    email TEXT NOT NULL,
    content TEXT NOT NULL,
    resolved BOOLEAN NOT NULL DEFAULT FALSE,
    created_at TIMESTAMP DEFAULT NOW()
);

-- Visit and search counters
CREATE TABLE IF NOT EXISTS site_counters (
    name VARCHAR PRIMARY KEY,
    value BIGINT NOT NULL DEFAULT 0
);
"""


def init_db():
    print("Connecting to database...")
    conn = psycopg2.connect(config.DATABASE_URL)
    cur = conn.cursor()

    print("Creating tables...")
    cur.execute(SCHEMA)
    conn.commit()

    cur.close()
    conn.close()

    print("Seeding default settings...")
    added = storage.initialize_default_settings()
    print(f"Done! Tables created/updated, {added} default settings added.")


def set_setting(key: str, value: str):
    row = storage.update_setting(key, value)
    print(f"{row['key']} = {row['value']!r}")


def main(argv=None):
    argv = sys.argv[1:] if argv is None else argv

    if not config.DATABASE_URL:
        print("ERROR: DATABASE_URL environment variable not set")
        return 1

    if not argv:
        init_db()
        return 0

    if argv[0] == 'set' and len(argv) == 3:
        set_setting(argv[1], argv[2])
        return 0

    print(__doc__)
    return 2


if __name__ == "__main__":
    sys.exit(main())
