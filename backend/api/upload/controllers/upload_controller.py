"""Upload controller: creates transfers from multipart forms or streamed PUTs."""

import tempfile

from fastapi import APIRouter, File, Form, HTTPException, Request, UploadFile, status
from starlette.concurrency import run_in_threadpool

from auth import get_owner_id
from config import MAX_FILE_SIZE, PUBLIC_BASE_URL
from api.transfers.errors import InvalidInput, PayloadTooLarge, TransferError
from api.upload.dto.upload import CreatedTransfer, UploadResponse
from api.upload.services import upload_service

router = APIRouter(tags=["Upload"])

SPOOL_MEMORY_LIMIT = 8 * 1024 * 1024  # larger bodies roll over to disk


def transfer_http_error(e: TransferError) -> HTTPException:
    if isinstance(e, InvalidInput):
        return HTTPException(status_code=400, detail=str(e))
    if isinstance(e, PayloadTooLarge):
        return HTTPException(status_code=413, detail=str(e))
    return HTTPException(status_code=503, detail=str(e) or "Service unavailable")


def parse_ttl(value: str | None, field: str) -> int | None:
    if value is None or not value.strip():
        return None
    try:
        return int(value)
    except ValueError:
        raise InvalidInput(f"{field} must be an integer")


def share_url(request: Request, link_id: str) -> str:
    base_url = PUBLIC_BASE_URL or str(request.base_url).rstrip("/")
    return f"{base_url}/download/{link_id}"


def _to_response(request: Request, created: CreatedTransfer) -> UploadResponse:
    return UploadResponse(
        link_id=created.link_id,
        share_url=share_url(request, created.link_id),
        file_name=created.file_name,
        file_size_bytes=created.file_size_bytes,
        expire_at=created.expire_at,
        password_required=created.password_required,
        manage_key=created.manage_key,
    )


@router.post(
    "/api/transfers",
    response_model=UploadResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_transfer(
    request: Request,
    file: UploadFile | None = File(None),
    password: str = Form(""),
    ttl_minutes: str | None = Form(None),
):
    """Create a transfer from a multipart form upload."""
    owner_id = get_owner_id(request)
    try:
        created = await run_in_threadpool(
            upload_service.create_transfer,
            file.file if file else None,
            file.filename if file else None,
            file.content_type if file else None,
            password or None,
            parse_ttl(ttl_minutes, "ttl_minutes"),
            owner_id,
        )
    except TransferError as e:
        raise transfer_http_error(e)
    finally:
        if file:
            await file.close()
    return _to_response(request, created)


async def _spool_body(request: Request):
    """Copy the request body to a spooled temp file, stopping at MAX_FILE_SIZE."""
    spool = tempfile.SpooledTemporaryFile(max_size=SPOOL_MEMORY_LIMIT)
    size = 0
    try:
        async for chunk in request.stream():
            size += len(chunk)
            if MAX_FILE_SIZE and size > MAX_FILE_SIZE:
                raise PayloadTooLarge(f"File exceeds max size of {MAX_FILE_SIZE} bytes")
            spool.write(chunk)
    except BaseException:
        spool.close()
        raise
    spool.seek(0)
    return spool


@router.put(
    "/{filename:path}",
    response_model=UploadResponse,
    status_code=status.HTTP_201_CREATED,
)
async def upload_file(request: Request, filename: str):
    """Create a transfer from a raw streamed body (curl -T)."""
    owner_id = get_owner_id(request)

    try:
        ttl_minutes = parse_ttl(request.headers.get("X-TTL-Minutes"), "X-TTL-Minutes")
        body = await _spool_body(request)
        try:
            created = await run_in_threadpool(
                upload_service.create_transfer,
                body,
                filename,
                request.headers.get("Content-Type"),
                request.headers.get("X-Password") or None,
                ttl_minutes,
                owner_id,
            )
        finally:
            body.close()
    except TransferError as e:
        raise transfer_http_error(e)
    return _to_response(request, created)
