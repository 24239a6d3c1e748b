from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from social_bot.config import settings
from social_bot.database import get_db
from social_bot.logging_config import get_logger
from social_bot.schemas.manual import ManualReplyRequest, ManualReplyResponse, MediaReplyResponse
from social_bot.services.media_service import OutgoingMedia
from social_bot.services.pipeline import ManualSendError, ReplyPipeline, get_pipeline

logger = get_logger("manual")

router = APIRouter()


@router.post("/manual-reply", response_model=ManualReplyResponse)
async def manual_reply(
    request: ManualReplyRequest,
    db: Session = Depends(get_db),
    pipeline: ReplyPipeline = Depends(get_pipeline),
):
    """Operator text reply from the dashboard."""
    try:
        await pipeline.manual_reply(db, request.conversationId, request.message)
    except ManualSendError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Manual reply not saved: {e}")
        raise HTTPException(status_code=500, detail="Failed to send")
    return ManualReplyResponse(ok=True)


@router.post("/manual-media-reply", response_model=MediaReplyResponse)
async def manual_media_reply(
    conversationId: Optional[str] = Form(default=None),
    files: List[UploadFile] = File(default=[]),
    db: Session = Depends(get_db),
    pipeline: ReplyPipeline = Depends(get_pipeline),
):
    """Operator image/video reply; each uploaded file is sent as its own attachment."""
    if len(files) > settings.max_upload_files:
        raise HTTPException(status_code=400, detail=f"At most {settings.max_upload_files} files per request")

    outgoing = []
    for upload in files:
        content = await upload.read()
        if len(content) > settings.max_upload_bytes:
            raise HTTPException(status_code=413, detail=f"File too large: {upload.filename}")
        outgoing.append(
            OutgoingMedia(
                filename=upload.filename or "upload",
                content_type=upload.content_type or "application/octet-stream",
                content=content,
            )
        )

    try:
        result = await pipeline.manual_media_reply(db, conversationId, outgoing)
    except ManualSendError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)

    body = MediaReplyResponse(
        ok=result.ok,
        sent=len(result.sent_items),
        failed=len(result.failed_items),
        sentItems=result.sent_items,
        failedItems=result.failed_items,
    )
    return JSONResponse(status_code=200 if result.ok else 500, content=body.model_dump())
