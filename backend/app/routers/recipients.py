"""
Recipient endpoints. Mounted at /api/users and served without
authentication, matching the public user routes of the admin frontend.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException

from app.dependencies import get_recipient_directory
from app.errors import DirectoryUnavailable
from app.models.recipient import Recipient
from app.services.recipients import SupabaseRecipientDirectory

router = APIRouter()

logger = logging.getLogger(__name__)


@router.get("/", response_model=List[Recipient])
async def list_recipients(
    directory: SupabaseRecipientDirectory = Depends(get_recipient_directory),
):
    try:
        return directory.list_recipients()
    except DirectoryUnavailable as e:
        logger.error(f"Error fetching users: {e.message}")
        raise HTTPException(status_code=500, detail=e.message)


@router.delete("/{recipient_id}")
async def delete_recipient(
    recipient_id: str,
    directory: SupabaseRecipientDirectory = Depends(get_recipient_directory),
):
    try:
        deleted = directory.delete(recipient_id)
    except Exception as e:
        logger.error(f"Error deleting user {recipient_id}: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Error deleting user: {str(e)}")

    if not deleted:
        raise HTTPException(status_code=404, detail="User not found")

    return {"message": "User deleted successfully"}
