"""
Publish orchestrator: upload -> persist -> render -> broadcast.

Also owns the newsletter read and delete flows, since delete has to
cascade into the asset store.

Step ordering within a publish is strict:

1. Optional image upload. Failure raises UploadFailed; nothing is persisted.
2. Record persistence. Failure raises PersistenceFailed; the uploaded image
   (if any) gets a best-effort compensating delete.
3. Recipient snapshot. Failure raises DirectoryUnavailable; the record stays.
4. Render and broadcast. Per-recipient failures are reported in the summary
   and never escalated.

Collaborators are injected; this module never reads configuration.
"""

import logging
from typing import Any, Optional

from app.errors import (
    AssetDeleteFailed,
    DirectoryUnavailable,
    NotFound,
    PersistenceFailed,
)
from app.models.newsletter import (
    BroadcastSummary,
    DeleteResult,
    Newsletter,
    NewsletterPage,
    PublishResult,
)
from app.services.broadcast import BroadcastDispatcher, summarize
from app.services.newsletter_repository import normalize_pagination, total_pages
from app.services.renderer import render_newsletter_html
from app.services.storage import DEFAULT_FOLDER, derive_asset_id

logger = logging.getLogger(__name__)


class NewsletterPublisher:

    def __init__(
        self,
        asset_store: Any,
        repository: Any,
        directory: Any,
        dispatcher: BroadcastDispatcher,
        asset_folder: str = DEFAULT_FOLDER,
    ):
        self.asset_store = asset_store
        self.repository = repository
        self.directory = directory
        self.dispatcher = dispatcher
        self.asset_folder = asset_folder

    def _discard_orphaned_asset(self, image_url: str) -> None:
        """Best-effort cleanup of an image whose record was never written."""
        asset_id = derive_asset_id(image_url)
        try:
            self.asset_store.delete_by_derived_id(asset_id, folder=self.asset_folder)
            logger.info(f"Removed orphaned image {asset_id} after persistence failure")
        except Exception as e:
            logger.error(f"Failed to remove orphaned image {asset_id}: {str(e)}")

    async def publish(
        self,
        subject: str,
        description: str,
        image: Optional[bytes] = None,
        filename: Optional[str] = None,
        content_type: Optional[str] = None,
    ) -> PublishResult:
        """
        Persist a newsletter and broadcast it to every current recipient.

        Raises:
            UploadFailed: image upload failed; no record created
            PersistenceFailed: record write failed; no broadcast attempted
            DirectoryUnavailable: recipients unreadable; record kept, nothing sent
        """
        image_url = ""
        if image:
            # UploadFailed propagates as-is: nothing has been written yet
            image_url = self.asset_store.upload(
                image,
                folder=self.asset_folder,
                filename=filename,
                content_type=content_type,
            )

        try:
            row = self.repository.create(subject, description, image_url)
        except PersistenceFailed:
            if image_url:
                self._discard_orphaned_asset(image_url)
            raise
        newsletter = Newsletter(**row)
        logger.info(f"Newsletter {newsletter.id} saved (image: {'yes' if image_url else 'no'})")

        try:
            recipients = self.directory.list_addresses()
        except DirectoryUnavailable as e:
            logger.error(f"Newsletter {newsletter.id} saved but not broadcast: {e.message}")
            e.newsletter = newsletter
            e.summary = BroadcastSummary()
            raise

        body = render_newsletter_html(newsletter.subject, newsletter.description, newsletter.image_url)
        outcomes = await self.dispatcher.broadcast(
            recipients, newsletter.subject, body, newsletter_id=newsletter.id
        )
        summary = summarize(outcomes)

        logger.info(
            f"Newsletter {newsletter.id} broadcast to {summary.recipient_count} recipients, "
            f"{summary.failure_count} failed"
        )
        return PublishResult(newsletter=newsletter, broadcast=summary)

    def list_page(self, page: Any = None, limit: Any = None) -> NewsletterPage:
        page, limit = normalize_pagination(page, limit)
        rows, total = self.repository.list(page, limit)
        return NewsletterPage(
            newsletters=[Newsletter(**row) for row in rows],
            total_count=total,
            total_pages=total_pages(total, limit),
            current_page=page,
            limit=limit,
        )

    def get(self, newsletter_id: str) -> Newsletter:
        row = self.repository.get(newsletter_id)
        if row is None:
            raise NotFound(f"Newsletter {newsletter_id} not found")
        return Newsletter(**row)

    def delete(self, newsletter_id: str) -> DeleteResult:
        """
        Delete a newsletter and, best-effort, its image.

        Image cleanup failures are logged and returned as warnings; they
        never block the record deletion.

        Raises:
            NotFound: no newsletter with this id
        """
        newsletter = self.get(newsletter_id)
        warnings = []

        if newsletter.image_url:
            asset_id = derive_asset_id(newsletter.image_url)
            try:
                self.asset_store.delete_by_derived_id(asset_id, folder=self.asset_folder)
                logger.info(f"Deleted image {asset_id} for newsletter {newsletter_id}")
            except Exception as e:
                message = e.message if isinstance(e, AssetDeleteFailed) else str(e)
                logger.error(f"Newsletter {newsletter_id}: image cleanup failed: {message}")
                warnings.append(message)

        if not self.repository.delete(newsletter_id):
            raise NotFound(f"Newsletter {newsletter_id} not found")

        logger.info(f"Newsletter {newsletter_id} deleted")
        return DeleteResult(id=newsletter_id, warnings=warnings)
