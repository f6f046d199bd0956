"""Download controller: streams a transfer to whoever holds the link."""

from urllib.parse import quote

from fastapi import APIRouter, Form, HTTPException
from fastapi.responses import StreamingResponse
from starlette.concurrency import run_in_threadpool

from storage import CHUNK_SIZE
from api.download.services import download_service
from api.download.services.download_service import ResolveOutcome
from api.transfers.errors import ServiceUnavailable

router = APIRouter(tags=["Download"])

_REFUSALS = {
    ResolveOutcome.NOT_FOUND: (404, "Transfer not found"),
    ResolveOutcome.EXPIRED: (410, "Transfer has expired"),
    ResolveOutcome.PASSWORD_REQUIRED: (401, "Password required"),
    ResolveOutcome.INVALID_CREDENTIAL: (403, "Incorrect password"),
}


def _content_disposition(file_name: str) -> str:
    fallback = file_name.encode("ascii", "replace").decode().replace('"', "'")
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(file_name)}"


async def _serve(link_id: str, password: str | None):
    try:
        result = await run_in_threadpool(
            download_service.resolve_transfer, link_id, password
        )
    except ServiceUnavailable as e:
        raise HTTPException(status_code=503, detail=str(e))

    if result.outcome is not ResolveOutcome.OK:
        status_code, detail = _REFUSALS[result.outcome]
        raise HTTPException(status_code=status_code, detail=detail)

    stream = result.stream
    transfer = result.transfer

    def iterfile():
        try:
            while chunk := stream.read(CHUNK_SIZE):
                yield chunk
        finally:
            stream.close()

    return StreamingResponse(
        iterfile(),
        media_type=transfer.content_type,
        headers={
            "Content-Disposition": _content_disposition(transfer.file_name),
            "Content-Length": str(transfer.file_size_bytes),
            "X-Download-Count": str(transfer.download_count),
        },
    )


@router.get("/download/{link_id}")
async def download_transfer(link_id: str):
    """Download an unprotected transfer."""
    return await _serve(link_id, None)


@router.post("/download/{link_id}")
async def download_protected_transfer(link_id: str, password: str = Form("")):
    """Download a transfer, supplying its password if it has one."""
    return await _serve(link_id, password or None)
