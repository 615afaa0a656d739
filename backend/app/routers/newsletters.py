"""
Newsletter API endpoints.

Endpoints (all require admin auth):
  POST   /            create a newsletter and broadcast it to every recipient
  GET    /            paginated list, most recent first (?page=&limit=)
  GET    /{id}        single newsletter
  DELETE /{id}        delete a newsletter and, best-effort, its image
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from app.auth import get_current_admin
from app.dependencies import get_publisher
from app.errors import DirectoryUnavailable, NotFound, PersistenceFailed, UploadFailed
from app.models.newsletter import Newsletter, NewsletterCreate, NewsletterPage
from app.services.publisher import NewsletterPublisher

router = APIRouter()

logger = logging.getLogger(__name__)


def _validation_detail(exc: ValidationError) -> list:
    # errors() carries exception objects in ctx, which are not JSON serializable
    return [{"loc": list(e["loc"]), "msg": e["msg"]} for e in exc.errors()]


async def _read_image(file: Optional[UploadFile]) -> Optional[bytes]:
    """Return the uploaded image bytes, or None when no file was sent."""
    if file is None:
        return None

    content = await file.read()
    if not content:
        if file.filename:
            raise HTTPException(status_code=400, detail="Uploaded image is empty")
        # Browsers send an empty, nameless part for an untouched file input
        return None

    content_type = (file.content_type or "").lower()
    if not content_type.startswith("image/"):
        raise HTTPException(status_code=400, detail="Only image files are supported")

    return content


@router.post("/", status_code=201)
async def create_newsletter(
    subject: str = Form(...),
    description: Optional[str] = Form(None),
    file: Optional[UploadFile] = File(None),
    admin_id: str = Depends(get_current_admin),
    publisher: NewsletterPublisher = Depends(get_publisher),
):
    """
    Create a newsletter and email it to every registered recipient.

    Returns 201 once the newsletter is saved, even if some (or all)
    deliveries failed; failures are listed in ``broadcast.failed``.
    Returns 500 if the image upload, the save, or the recipient lookup fails.

    Requires authentication.
    """
    try:
        request = NewsletterCreate(subject=subject, description=description)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=_validation_detail(e))

    image = await _read_image(file)

    logger.info(
        f"Create newsletter request from admin {admin_id}: "
        f"subject={request.subject!r}, image={'yes' if image else 'no'}"
    )

    try:
        result = await publisher.publish(
            request.subject,
            request.description,
            image=image,
            filename=file.filename if file is not None else None,
            content_type=file.content_type if file is not None else None,
        )
    except (UploadFailed, PersistenceFailed) as e:
        logger.error(f"Error creating newsletter: {e.message}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"message": "Error creating newsletter", "error": e.message},
        )
    except DirectoryUnavailable as e:
        logger.error(f"Error broadcasting newsletter: {e.message}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={
                "message": "Newsletter saved but could not be sent",
                "error": e.message,
                "newsletter_id": e.newsletter.id if e.newsletter else None,
            },
        )

    return {
        "message": "Newsletter created and sent successfully",
        "newsletter": result.newsletter.model_dump(),
        "broadcast": result.broadcast.model_dump(),
    }


@router.get("/", response_model=NewsletterPage)
async def list_newsletters(
    page: Optional[str] = Query(default=None),
    limit: Optional[str] = Query(default=None),
    admin_id: str = Depends(get_current_admin),
    publisher: NewsletterPublisher = Depends(get_publisher),
):
    """
    List newsletters, most recent first.

    ``page`` is 1-based (default 1) and ``limit`` defaults to 10. Missing,
    non-numeric, or non-positive values fall back to the defaults.

    Requires authentication.
    """
    try:
        return publisher.list_page(page, limit)
    except Exception as e:
        logger.error(f"Error fetching newsletters: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Error fetching newsletters: {str(e)}")


@router.get("/{newsletter_id}", response_model=Newsletter)
async def get_newsletter(
    newsletter_id: str,
    admin_id: str = Depends(get_current_admin),
    publisher: NewsletterPublisher = Depends(get_publisher),
):
    """Requires authentication."""
    try:
        return publisher.get(newsletter_id)
    except NotFound:
        raise HTTPException(status_code=404, detail="Newsletter not found")
    except Exception as e:
        logger.error(f"Error fetching newsletter {newsletter_id}: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Error fetching newsletter: {str(e)}")


@router.delete("/{newsletter_id}")
async def delete_newsletter(
    newsletter_id: str,
    admin_id: str = Depends(get_current_admin),
    publisher: NewsletterPublisher = Depends(get_publisher),
):
    """
    Delete a newsletter and its image from storage.

    Image cleanup is best-effort: a storage failure is reported in
    ``warnings`` and the newsletter is still deleted.

    Requires authentication.
    """
    try:
        result = publisher.delete(newsletter_id)
    except NotFound:
        raise HTTPException(status_code=404, detail="Newsletter not found")
    except Exception as e:
        logger.error(f"Error deleting newsletter {newsletter_id}: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Error deleting newsletter: {str(e)}")

    return {"message": "Newsletter deleted successfully", "warnings": result.warnings}
