"""SQLite store for the owned-card collection."""

import sqlite3
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Union

from ..core.types import CatalogRecord
from ..utils.config import resolve_collection_db_path
from ..utils.error_handler import CollectionStoreError
from ..utils.log import get_logger


@dataclass(frozen=True)
class CollectionEntry:
    card_id: str
    name: str
    set_id: str
    set_name: str
    number: str
    rarity: Optional[str]
    quantity: int
    is_favorite: bool
    current_price: Optional[float]
    added_at: str
    updated_at: str


class CollectionStore:
    """Owned cards keyed by catalog card id, with a quantity per card."""

    def __init__(self, db_path: Optional[Union[str, Path]] = None):
        self.logger = get_logger(__name__)
        if db_path is None:
            self.db_path = resolve_collection_db_path()
        else:
            self.db_path = Path(db_path)
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_database()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_database(self):
        """Initialize SQLite database with required tables."""
        try:
            with self._connect() as conn:
                conn.execute(
                    """
                    CREATE TABLE IF NOT EXISTS collection (
                        card_id TEXT PRIMARY KEY,
                        name TEXT NOT NULL,
                        set_id TEXT NOT NULL,
                        set_name TEXT NOT NULL,
                        number TEXT NOT NULL,
                        rarity TEXT,
                        quantity INTEGER NOT NULL DEFAULT 1,
                        is_favorite INTEGER NOT NULL DEFAULT 0,
                        current_price REAL,
                        added_at TEXT NOT NULL,
                        updated_at TEXT NOT NULL
                    )
                """
                )
                conn.commit()
                self.logger.info("Collection database initialized", db_path=str(self.db_path))

        except sqlite3.Error as e:
            self.logger.error("Error initializing collection database", error=str(e))
            raise CollectionStoreError(f"Could not open collection database: {e}") from e

    def upsert(self, record: CatalogRecord) -> int:
        """Add a card, or bump its quantity if already owned. Returns the new quantity."""
        now = datetime.now().isoformat()
        price = record.prices.tcgplayer_market_usd if record.prices else None
        try:
            with self._connect() as conn:
                conn.execute(
                    """
                    INSERT INTO collection
                    (card_id, name, set_id, set_name, number, rarity, quantity, current_price, added_at, updated_at)
                    VALUES (?, ?, ?, ?, ?, ?, 1, ?, ?, ?)
                    ON CONFLICT(card_id) DO UPDATE SET
                        quantity = quantity + 1,
                        current_price = COALESCE(excluded.current_price, current_price),
                        updated_at = excluded.updated_at
                """,
                    (
                        record.card_id,
                        record.name,
                        record.set_id,
                        record.set_name,
                        record.number,
                        record.rarity,
                        price,
                        now,
                        now,
                    ),
                )
                row = conn.execute(
                    "SELECT quantity FROM collection WHERE card_id = ?", (record.card_id,)
                ).fetchone()
                conn.commit()

        except sqlite3.Error as e:
            self.logger.error("Error adding card", card_id=record.card_id, error=str(e))
            raise CollectionStoreError(details={"card_id": record.card_id, "error": str(e)}) from e

        self.logger.debug("Card added to collection", card_id=record.card_id, quantity=row["quantity"])
        return row["quantity"]

    def fetch(self, card_id: str) -> Optional[CollectionEntry]:
        try:
            with self._connect() as conn:
                row = conn.execute("SELECT * FROM collection WHERE card_id = ?", (card_id,)).fetchone()
        except sqlite3.Error as e:
            raise CollectionStoreError(details={"card_id": card_id, "error": str(e)}) from e
        return _to_entry(row) if row else None

    def decrease_quantity(self, card_id: str) -> bool:
        """Drop one copy. Returns True when the last copy was removed."""
        entry = self.fetch(card_id)
        if entry is None:
            raise CollectionStoreError(f"Card not in collection: {card_id}")

        if entry.quantity <= 1:
            self.remove(card_id)
            return True

        self._execute(
            "UPDATE collection SET quantity = quantity - 1, updated_at = ? WHERE card_id = ?",
            (datetime.now().isoformat(), card_id),
            card_id,
        )
        return False

    def remove(self, card_id: str) -> None:
        self._execute("DELETE FROM collection WHERE card_id = ?", (card_id,), card_id)
        self.logger.debug("Card removed from collection", card_id=card_id)

    def list_all(self) -> List[CollectionEntry]:
        """All owned cards, most recently added first."""
        try:
            with self._connect() as conn:
                rows = conn.execute(
                    "SELECT * FROM collection ORDER BY added_at DESC, card_id"
                ).fetchall()
        except sqlite3.Error as e:
            self.logger.error("Error listing collection", error=str(e))
            raise CollectionStoreError(details={"error": str(e)}) from e
        return [_to_entry(row) for row in rows]

    def update_price(self, card_id: str, price: float) -> None:
        self._execute(
            "UPDATE collection SET current_price = ?, updated_at = ? WHERE card_id = ?",
            (float(price), datetime.now().isoformat(), card_id),
            card_id,
        )

    def toggle_favorite(self, card_id: str) -> bool:
        """Flip the favorite flag; returns the new value."""
        self._execute(
            "UPDATE collection SET is_favorite = 1 - is_favorite, updated_at = ? WHERE card_id = ?",
            (datetime.now().isoformat(), card_id),
            card_id,
        )
        return self.fetch(card_id).is_favorite

    def _execute(self, sql: str, params: tuple, card_id: str) -> None:
        """Run a single-card write; a missing card is an error."""
        try:
            with self._connect() as conn:
                result = conn.execute(sql, params)
                if result.rowcount == 0:
                    raise CollectionStoreError(f"Card not in collection: {card_id}")
                conn.commit()
        except sqlite3.Error as e:
            self.logger.error("Collection write failed", card_id=card_id, error=str(e))
            raise CollectionStoreError(details={"card_id": card_id, "error": str(e)}) from e


def _to_entry(row: sqlite3.Row) -> CollectionEntry:
    return CollectionEntry(
        card_id=row["card_id"],
        name=row["name"],
        set_id=row["set_id"],
        set_name=row["set_name"],
        number=row["number"],
        rarity=row["rarity"],
        quantity=row["quantity"],
        is_favorite=bool(row["is_favorite"]),
        current_price=row["current_price"],
        added_at=row["added_at"],
        updated_at=row["updated_at"],
    )
