import json
import logging
import sqlite3
from datetime import datetime, timezone
from typing import Iterable

from free_data_integration.models import PropertyData


logger = logging.getLogger("fdi.storage")

_COLUMNS = (
    "address",
    "city",
    "state",
    "zip_code",
    "property_type",
    "square_footage",
    "asking_price",
    "lot_size_acres",
    "description",
    "listing_url",
    "source",
    "coordinates",
    "scraped_at",
)


class SQLiteSink:
    """Persist found properties; one row per address/city/state."""

    def __init__(self, path: str):
        self.path = path
        self.conn = sqlite3.connect(self.path)
        self._create_tables()

    def _create_tables(self):
        cur = self.conn.cursor()
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS scraped_properties (
                id INTEGER PRIMARY KEY,
                address TEXT NOT NULL,
                city TEXT,
                state TEXT,
                zip_code TEXT,
                property_type TEXT,
                square_footage REAL,
                asking_price REAL,
                lot_size_acres REAL,
                description TEXT,
                listing_url TEXT,
                source TEXT,
                coordinates TEXT,
                scraped_at TEXT,
                UNIQUE(address, city, state)
            )
            """
        )
        cur.execute(
            "CREATE INDEX IF NOT EXISTS idx_scraped_properties_source ON scraped_properties(source)"
        )
        self.conn.commit()

    def save(self, properties: Iterable[PropertyData], source: str) -> int:
        """Insert new rows, skipping duplicates. Returns how many were inserted."""

        now = datetime.now(timezone.utc).isoformat()
        cur = self.conn.cursor()
        inserted = 0
        placeholders = ", ".join("?" for _ in _COLUMNS)
        for prop in properties:
            coordinates = None
            if prop.coordinates is not None:
                coordinates = json.dumps({"lat": prop.coordinates.lat, "lng": prop.coordinates.lng})
            cur.execute(
                f"INSERT OR IGNORE INTO scraped_properties ({', '.join(_COLUMNS)}) VALUES ({placeholders})",
                (
                    prop.address,
                    prop.city,
                    prop.state,
                    prop.zip_code,
                    prop.property_type,
                    prop.square_footage,
                    prop.asking_price,
                    prop.lot_size_acres,
                    prop.description,
                    prop.listing_url,
                    source,
                    coordinates,
                    now,
                ),
            )
            inserted += cur.rowcount if cur.rowcount > 0 else 0
        self.conn.commit()
        logger.info("Stored %d new properties from %s in %s", inserted, source, self.path)
        return inserted

    def count(self) -> int:
        cur = self.conn.cursor()
        cur.execute("SELECT COUNT(*) FROM scraped_properties")
        return int(cur.fetchone()[0])

    def close(self):
        self.conn.close()
