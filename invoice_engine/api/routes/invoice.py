import logging
from typing import Final

from fastapi import APIRouter, File, HTTPException, UploadFile, status

from invoice_engine.api.deps import AmountDecoderDep, ConfigCacheDep, TextExtractorDep
from invoice_engine.core.config import settings
from invoice_engine.schemas.extraction import ExtractionResponse, ExtractionStatus
from invoice_engine.services.pipelines.invoice import InvoiceExtractionPipeline

router = APIRouter(prefix="/invoice", tags=["invoice"])

logger = logging.getLogger(__name__)
ALLOWED_CONTENT_TYPES: Final[set[str]] = {
    "application/pdf",
    "text/plain",
}


@router.post(
    "/extract",
    summary="Classify an invoice and extract its configured blocks",
    response_model=ExtractionResponse,
)
async def extract_invoice(
    text_extractor: TextExtractorDep,
    config_cache: ConfigCacheDep,
    amount_decoder: AmountDecoderDep,
    file: UploadFile = File(..., description="Invoice PDF or plain-text export"),
) -> ExtractionResponse:
    """Run tenant classification and rule extraction on an uploaded file."""

    content_type = (file.content_type or "").lower().split(";")[0].strip()
    if content_type not in ALLOWED_CONTENT_TYPES:
        raise HTTPException(
            status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
            detail=f"Unsupported file type: {file.content_type}",
        )

    try:
        payload = await file.read()
    except Exception as exc:  # pragma: no cover - upload IO errors are rare
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Failed to read uploaded file.",
        ) from exc

    if not payload:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Uploaded file is empty.",
        )
    if len(payload) > settings.max_upload_mb * 1024 * 1024:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"Uploaded file exceeds {settings.max_upload_mb} MB.",
        )

    pipeline = InvoiceExtractionPipeline(
        text_extractor=text_extractor,
        config_cache=config_cache,
        amount_decoder=amount_decoder,
    )
    result = await pipeline.run(
        payload,
        filename=file.filename,
        content_type=content_type,
    )

    if result.status is ExtractionStatus.ERROR:
        logger.warning("Invoice extraction failed: file=%s warnings=%s", file.filename, result.warnings)
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={"message": "Invoice extraction failed.", "warnings": result.warnings},
        )

    return ExtractionResponse.from_result(result)
