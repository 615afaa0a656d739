"""
Newsletter rows in the Supabase ``newsletters`` table.

Columns: id, subject, description, image_url, created_at, updated_at.
id and the timestamps are assigned by the database.
"""

import logging
import math
from typing import Any, List, Optional, Tuple

from supabase import Client

from app.errors import PersistenceFailed

logger = logging.getLogger(__name__)

TABLE = "newsletters"

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10


def _coerce_positive_int(value: Any, default: int) -> int:
    """Parse a page/limit value; anything unparseable or <= 0 becomes the default."""
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        return default
    return parsed if parsed > 0 else default


def normalize_pagination(page: Any, limit: Any) -> Tuple[int, int]:
    """Return (page, limit) with invalid values replaced by the defaults."""
    return (
        _coerce_positive_int(page, DEFAULT_PAGE),
        _coerce_positive_int(limit, DEFAULT_LIMIT),
    )


def total_pages(total_count: int, limit: int) -> int:
    return math.ceil(total_count / limit) if limit > 0 else 0


class SupabaseNewsletterRepository:
    """Content repository for newsletter records."""

    def __init__(self, client: Optional[Client]):
        self.client = client

    def _table(self):
        if not self.client:
            raise ValueError("SUPABASE_SERVICE_KEY is required for database operations")
        return self.client.table(TABLE)

    def create(self, subject: str, description: str, image_url: str = "") -> dict:
        """
        Insert a newsletter row and return it as stored.

        Raises:
            PersistenceFailed: if the insert errors or returns no row
        """
        try:
            result = self._table().insert({
                "subject": subject,
                "description": description,
                "image_url": image_url,
            }).execute()
        except Exception as e:
            raise PersistenceFailed(f"Failed to save newsletter: {str(e)}") from e

        if not result.data:
            raise PersistenceFailed("Failed to save newsletter: no row returned")

        return result.data[0]

    def list(self, page: Any = DEFAULT_PAGE, limit: Any = DEFAULT_LIMIT) -> Tuple[List[dict], int]:
        """
        Return one page of rows (most recent first) and the total row count.

        Offset is (page - 1) * limit. Supabase ranges are inclusive.
        """
        page, limit = normalize_pagination(page, limit)
        offset = (page - 1) * limit

        result = (
            self._table()
            .select("*", count="exact")
            .order("created_at", desc=True)
            .range(offset, offset + limit - 1)
            .execute()
        )

        rows = result.data or []
        total = result.count if result.count is not None else len(rows)
        return rows, total

    def get(self, newsletter_id: str) -> Optional[dict]:
        result = self._table().select("*").eq("id", newsletter_id).execute()
        if not result.data:
            return None
        return result.data[0]

    def delete(self, newsletter_id: str) -> bool:
        """Delete a row. Returns False if no row matched."""
        result = self._table().delete().eq("id", newsletter_id).execute()
        return bool(result.data)

    def ping(self) -> None:
        """Lightweight query used by the database health check."""
        self._table().select("id").limit(1).execute()
