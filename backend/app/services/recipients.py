"""
Recipient directory backed by the Supabase ``users`` table.
"""

import logging
from typing import List, Optional

from supabase import Client

from app.errors import DirectoryUnavailable
from app.models.recipient import Recipient

logger = logging.getLogger(__name__)

TABLE = "users"


class SupabaseRecipientDirectory:
    """Read-mostly access to registered recipients."""

    def __init__(self, client: Optional[Client]):
        self.client = client

    def _table(self):
        if not self.client:
            raise ValueError("SUPABASE_SERVICE_KEY is required for database operations")
        return self.client.table(TABLE)

    def list_addresses(self) -> List[str]:
        """
        Snapshot every recipient address for one broadcast.

        Rows without an email are skipped. Nothing is cached between calls,
        so recipients added or removed since the last publish are reflected.

        Raises:
            DirectoryUnavailable: if the directory cannot be read
        """
        try:
            result = self._table().select("email").execute()
        except Exception as e:
            raise DirectoryUnavailable(f"Failed to fetch recipients: {str(e)}") from e

        addresses = [row["email"] for row in (result.data or []) if row.get("email")]
        logger.info(f"Fetched {len(addresses)} recipient addresses")
        return addresses

    def list_recipients(self) -> List[Recipient]:
        try:
            result = self._table().select("id, email, created_at").execute()
        except Exception as e:
            raise DirectoryUnavailable(f"Failed to fetch recipients: {str(e)}") from e
        return [Recipient(**row) for row in (result.data or [])]

    def delete(self, recipient_id: str) -> bool:
        """Delete a recipient. Returns False if no row matched."""
        result = self._table().delete().eq("id", recipient_id).execute()
        return bool(result.data)
