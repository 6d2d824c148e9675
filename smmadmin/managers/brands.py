"""Brand management for smmadmin."""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple

from smmadmin.models import Brand, BrandDocument, Post
from smmadmin.exceptions import ValidationError
from smmadmin.managers.database import DatabaseManager
from smmadmin.managers.token_store import GlobalTokenStore
from smmadmin.utils.credentials import canonicalize_credentials
from smmadmin.utils.file import remove_files
from smmadmin.utils.strings import parse_languages


def parse_credentials(value: Optional[str]) -> Optional[Dict[str, Any]]:
    """Parse a credentials JSON form field.

    Args:
        value: Raw JSON text (blank means "not configured")

    Returns:
        Parsed mapping, or None for a blank value

    Raises:
        ValidationError: If the value is not a JSON object
    """
    if not value or not value.strip():
        return None
    try:
        parsed = json.loads(value)
    except ValueError:
        logging.error(f"💥 Invalid JSON: {value[:200]}")
        raise ValidationError("Invalid JSON in credentials")
    if not isinstance(parsed, dict):
        raise ValidationError("Invalid JSON in credentials")
    return parsed


class BrandManager:
    """Creates, renames and deletes brands."""

    def __init__(
        self,
        db_manager: DatabaseManager,
        token_store: GlobalTokenStore,
        upload_directory: Path,
    ):
        """Initialize the brand manager.

        Args:
            db_manager: DatabaseManager instance for data persistence
            token_store: Global Meta token store
            upload_directory: Directory holding uploaded documents
        """
        self.db = db_manager
        self.token_store = token_store
        self.upload_directory = upload_directory

    async def _store_token(self, token: str, source: str) -> None:
        try:
            await self.token_store.set_global_token(token)
            logging.info(f"🌐 Saved global Instagram/Facebook token from {source}")
        except Exception as e:
            logging.error(f"💥 Failed to save global Instagram/Facebook token ({source}): {e}")

    async def _meta_credentials(self, value: Optional[str], provider: str) -> Optional[Dict[str, Any]]:
        """Parse Instagram/Facebook credentials, moving any token to the global store."""
        credentials = parse_credentials(value)
        if not credentials:
            return None

        credentials = canonicalize_credentials(credentials)
        token = credentials.pop("access_token", None)
        if token:
            await self._store_token(token, f"{provider} credentials")
        return credentials

    async def create_brand(self, form: Mapping[str, str]) -> Brand:
        """Create a brand from submitted form fields.

        Args:
            form: Form fields (``name``, ``description``, ``*_credentials``,
                ``*_languages``, ``telegram_channel``,
                ``instagramFacebook_global_token``)

        Returns:
            The stored Brand

        Raises:
            ValidationError: If the name is missing or credentials are invalid JSON
        """
        name = (form.get("name") or "").strip()
        if not name:
            raise ValidationError("Brand name is required")

        instagram = await self._meta_credentials(form.get("instagram_credentials"), "instagram")
        facebook = await self._meta_credentials(form.get("facebook_credentials"), "facebook")

        global_token = (form.get("instagramFacebook_global_token") or "").strip()
        if global_token:
            await self._store_token(global_token, "global token field")

        brand = self.db.create_brand(
            name=name,
            description=form.get("description") or None,
            telegram_channel=form.get("telegram_channel") or None,
            telegram_languages=parse_languages(form.get("telegram_languages")),
            wordpress_credentials=parse_credentials(form.get("wordpress_credentials")),
            wordpress_languages=parse_languages(form.get("wordpress_languages")),
            linkedin_credentials=parse_credentials(form.get("linkedin_credentials")),
            linkedin_languages=parse_languages(form.get("linkedin_languages")),
            tiktok_credentials=form.get("tiktok_credentials") or None,
            tiktok_languages=parse_languages(form.get("tiktok_languages")),
            instagram_credentials=instagram,
            instagram_languages=parse_languages(form.get("instagram_languages")),
            facebook_credentials=facebook,
            facebook_languages=parse_languages(form.get("facebook_languages")),
        )
        logging.info(f"🏷️ Brand created: {brand.name} ({brand.id})")
        return brand

    def get_brand(self, brand_id: int) -> Optional[Brand]:
        return self.db.get_brand(brand_id)

    def list_brands(self) -> List[Brand]:
        """All brands, newest first."""
        return self.db.list_brands()

    def get_brand_view(self, brand_id: int) -> Tuple[Brand, List[BrandDocument], List[Post]]:
        """Brand with its documents and posts, newest first.

        Raises:
            ValidationError: If the brand does not exist
        """
        brand = self.db.get_brand(brand_id)
        if not brand:
            raise ValidationError("Brand not found")
        return brand, self.db.list_documents(brand_id), self.db.list_posts(brand_id)

    def rename_brand(self, brand_id: int, name: str) -> None:
        """Rename a brand.

        Raises:
            ValidationError: If the name is empty or the brand does not exist
        """
        if not name or not name.strip():
            raise ValidationError("Name cannot be empty")
        if not self.db.update_brand(brand_id, name=name.strip()):
            raise ValidationError("Brand not found")

    def delete_brand(self, brand_id: int) -> None:
        """Delete a brand, its posts, its document records and files.

        Raises:
            ValidationError: If the brand does not exist
        """
        documents = self.db.list_documents(brand_id)
        removed = remove_files(self.upload_directory, [doc.filename for doc in documents])
        if not self.db.delete_brand(brand_id):
            raise ValidationError("Brand not found")
        logging.info(f"🗑️ Brand {brand_id} deleted ({removed} file(s) removed)")
