"""Brand reference documents and their retrieval-index relay."""

import logging
from pathlib import Path
from typing import Optional

import aiohttp

from smmadmin.models import BrandDocument
from smmadmin.exceptions import ValidationError
from smmadmin.managers.database import DatabaseManager
from smmadmin.services.webhooks import WebhookClient
from smmadmin.utils.file import remove_files


class DocumentManager:
    """Records uploaded brand documents and keeps the n8n RAG index in sync.

    Webhook failures never undo the local change; they are only logged.
    """

    def __init__(
        self,
        db_manager: DatabaseManager,
        webhook_client: WebhookClient,
        upload_directory: Path,
        upload_rag_url: Optional[str] = None,
        delete_rag_url: Optional[str] = None,
    ):
        self.db = db_manager
        self.webhook_client = webhook_client
        self.upload_directory = upload_directory
        self.upload_rag_url = upload_rag_url
        self.delete_rag_url = delete_rag_url

    async def add_document(
        self,
        brand_id: int,
        filename: str,
        original_name: str,
        mime: Optional[str] = None,
    ) -> BrandDocument:
        """Record an uploaded document and send it to the RAG ingestion webhook.

        Args:
            brand_id: Owning brand
            filename: Stored file name inside the upload directory
            original_name: File name as uploaded by the user
            mime: MIME type reported by the upload

        Returns:
            The stored BrandDocument

        Raises:
            ValidationError: If the brand does not exist
        """
        brand = self.db.get_brand(brand_id)
        if not brand:
            raise ValidationError("Brand not found")

        document = self.db.add_document(brand_id, filename, original_name, mime)

        try:
            with open(self.upload_directory / filename, "rb") as stream:
                form = aiohttp.FormData()
                form.add_field("rag_docs[]", stream, filename=original_name)
                form.add_field("brandId", str(brand_id))
                await self.webhook_client.post_form(self.upload_rag_url, form)
            logging.info(f"✅ Document {original_name} sent to RAG for brand {brand.name}")
        except Exception as e:
            logging.error(f"❌ Error sending document to RAG: {e}")

        return document

    async def delete_all_documents(self, brand_id: int) -> int:
        """Delete every document of a brand and notify the RAG deletion webhook.

        Returns:
            Number of document records deleted
        """
        documents = self.db.list_documents(brand_id)
        remove_files(self.upload_directory, [doc.filename for doc in documents])
        deleted = self.db.delete_documents(brand_id)

        try:
            await self.webhook_client.post_json(self.delete_rag_url, {"brandId": brand_id})
            logging.info(f"✅ All documents of brand {brand_id} deleted and n8n notified")
        except Exception as e:
            logging.error(f"❌ Error notifying n8n after deleting documents: {e}")

        return deleted
