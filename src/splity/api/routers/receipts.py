"""Receipt upload endpoint."""
import asyncio
import logging
from uuid import UUID

import httpx
from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from splity.api.dependencies import (
    get_app_settings,
    get_async_session,
    get_current_user,
    get_object_storage,
    get_receipt_analyzer,
)
from splity.core.config import Settings
from splity.repositories.party import PartyRepository
from splity.schemas.auth import AuthenticatedUser
from splity.schemas.receipt import ReceiptUploadResponse
from splity.services.receipts import ReceiptAnalysisError, ReceiptAnalyzer
from splity.services.storage import ObjectStorage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/parties", tags=["receipts"])

FILE_NAME_HEADER = "x-filename"
DEFAULT_FILE_NAME = "uploaded-file"


@router.post("/{party_id}/receipts", response_model=ReceiptUploadResponse)
async def upload_receipt(
    party_id: UUID,
    request: Request,
    _current_user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
    settings: Settings = Depends(get_app_settings),
    storage: ObjectStorage = Depends(get_object_storage),
    analyzer: ReceiptAnalyzer = Depends(get_receipt_analyzer),
) -> ReceiptUploadResponse | JSONResponse:
    """
    Upload a receipt image for a party and read its line items.

    The raw request body is the image; the ``x-filename`` header names it.
    The image is stored first, then the bill image record is written while
    the OCR service analyzes the stored image. An OCR failure is reported as
    502 and keeps the bill image record.
    """
    content = await request.body()
    if not content:
        raise HTTPException(status_code=400, detail="No file content provided")

    parties = PartyRepository(db)
    if await parties.get(party_id) is None:
        raise HTTPException(status_code=404, detail="Party not found")

    file_name = request.headers.get(FILE_NAME_HEADER, "").strip() or DEFAULT_FILE_NAME
    file_url = await storage.upload(content, file_name, settings.receipt_key_prefix)

    # Both must settle before the session is reused or the request ends
    bill_image, receipt = await asyncio.gather(
        parties.add_bill_image(party_id, file_name, file_url),
        analyzer.analyze(file_url),
        return_exceptions=True,
    )
    if isinstance(bill_image, BaseException):
        raise bill_image
    if isinstance(receipt, ReceiptAnalysisError | httpx.HTTPError):
        logger.warning("Receipt analysis failed for %s: %s", file_url, receipt)
        return JSONResponse(status_code=502, content={"detail": "Receipt analysis failed"})
    if isinstance(receipt, BaseException):
        raise receipt

    return ReceiptUploadResponse(file_url=file_url, bill_id=bill_image.bill_id, receipt=receipt)
