"""Global Meta token store for smmadmin."""

import logging
from typing import Optional

from smmadmin.exceptions import DatabaseError
from smmadmin.managers.database import DatabaseManager


class GlobalTokenStore:
    """Single source of truth for the long-lived Meta token shared by all brands.

    Reads are forgiving: any storage failure is logged and reported as
    "no token". Writes propagate storage failures to the caller.
    """

    def __init__(self, db_manager: DatabaseManager):
        """Initialize the token store.

        Args:
            db_manager: DatabaseManager instance holding the global_tokens table
        """
        self.db = db_manager

    async def get_global_token(self) -> Optional[str]:
        """Return the current global token, or None if unset or unreadable."""
        try:
            return self.db.get_global_token()
        except DatabaseError as e:
            logging.error(f"💥 Error fetching global token: {e}")
            return None

    async def set_global_token(self, token: str) -> None:
        """Create or update the global token.

        Args:
            token: New long-lived access token

        Raises:
            DatabaseError: If the token could not be stored
        """
        try:
            self.db.upsert_global_token(token)
        except DatabaseError as e:
            logging.error(f"💥 Error setting global token: {e}")
            raise
        logging.debug("🔑 Global token stored")
