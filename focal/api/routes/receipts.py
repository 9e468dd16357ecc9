"""API routes for AI receipt extraction and the usage quota."""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile

from focal.api.dependencies import get_receipt_service
from focal.core.config import settings
from focal.core.exceptions import ValidationError
from focal.core.observability import sentry_breadcrumb
from focal.core.security import get_current_user_id
from focal.models.schemas import (
    AudioReceiptsData,
    ExpenseDraft,
    ProcessReceiptRequest,
    QuotaStatusRead,
    SuccessResponse,
)
from focal.services.receipt_service import ReceiptProcessingService
from focal.utils.helpers import parse_local_date

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/receipts", tags=["receipts"])


@router.post("/process", response_model=SuccessResponse[ExpenseDraft])
async def process_receipt(
    body: ProcessReceiptRequest,
    user_id: str = Depends(get_current_user_id),
    service: ReceiptProcessingService = Depends(get_receipt_service),
):
    """Extract an expense draft from a receipt image data URI."""
    sentry_breadcrumb(category="receipts", message="receipts.process", data={"user_id": user_id})
    draft = await service.process_image(user_id, body.image)
    return SuccessResponse[ExpenseDraft](data=draft)


@router.post("/process-audio", response_model=SuccessResponse[AudioReceiptsData])
async def process_audio(
    audio: UploadFile = File(...),
    user_local_date: Optional[str] = Form(None, alias="userLocalDate"),
    user_id: str = Depends(get_current_user_id),
    service: ReceiptProcessingService = Depends(get_receipt_service),
):
    """Extract zero or more expense drafts from a voice note."""
    content_type = (audio.content_type or "").lower()
    if not content_type.startswith("audio/"):
        raise ValidationError("Invalid file type. Please upload an audio file.")
    data = await audio.read()
    if not data:
        raise ValidationError("Audio file is required")
    if len(data) > settings.MAX_AUDIO_UPLOAD_SIZE:
        raise ValidationError(
            f"Audio file too large. Maximum size is {settings.MAX_AUDIO_UPLOAD_SIZE // (1024 * 1024)}MB."
        )

    logger.info("[receipts] audio upload user=%s type=%s bytes=%d", user_id, content_type, len(data))
    drafts = await service.process_audio(user_id, data, content_type, parse_local_date(user_local_date))
    return SuccessResponse[AudioReceiptsData](data=AudioReceiptsData(receipts=drafts))


@router.get("/quota", response_model=QuotaStatusRead)
async def get_quota(
    user_id: str = Depends(get_current_user_id),
    service: ReceiptProcessingService = Depends(get_receipt_service),
):
    """Current AI scan usage for the caller."""
    status = await service.quota_status(user_id)
    return QuotaStatusRead(
        limit=status.limit,
        used=status.used,
        remaining=status.remaining,
        reset_at=int(status.reset_at * 1000),
        reset_in=status.reset_in,
    )
