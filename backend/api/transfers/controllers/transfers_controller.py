"""Transfers controller: metadata, listing and deletion."""

from fastapi import APIRouter, HTTPException, Request, status
from starlette.concurrency import run_in_threadpool

from auth import get_manage_key, get_owner_id
from api.download.services import download_service
from api.download.services.download_service import ResolveOutcome
from api.transfers.dto.transfer import OwnedTransfer, TransferMetadata
from api.transfers.errors import ServiceUnavailable
from api.transfers.services import transfers_service
from api.transfers.services.transfers_service import DeleteOutcome

router = APIRouter(prefix="/api/transfers", tags=["Transfers"])


@router.get("", response_model=list[OwnedTransfer])
async def list_transfers(request: Request):
    owner_id = get_owner_id(request)
    if owner_id is None:
        raise HTTPException(status_code=401, detail="Owner token required")
    try:
        return await run_in_threadpool(transfers_service.list_owned, owner_id)
    except ServiceUnavailable as e:
        raise HTTPException(status_code=503, detail=str(e))


@router.get("/{link_id}", response_model=TransferMetadata)
async def get_transfer(link_id: str):
    try:
        result = await run_in_threadpool(download_service.get_metadata, link_id)
    except ServiceUnavailable as e:
        raise HTTPException(status_code=503, detail=str(e))
    if result.outcome is ResolveOutcome.EXPIRED:
        raise HTTPException(status_code=410, detail="Transfer has expired")
    if result.outcome is not ResolveOutcome.OK:
        raise HTTPException(status_code=404, detail="Transfer not found")
    return result.transfer


@router.delete("/{link_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_transfer(request: Request, link_id: str):
    owner_id = get_owner_id(request)
    try:
        outcome = await run_in_threadpool(
            transfers_service.delete_owned, link_id, owner_id, get_manage_key(request)
        )
    except ServiceUnavailable as e:
        raise HTTPException(status_code=503, detail=str(e))
    if outcome is DeleteOutcome.NOT_FOUND:
        raise HTTPException(status_code=404, detail="Transfer not found")
    if outcome is DeleteOutcome.FORBIDDEN:
        raise HTTPException(status_code=403, detail="Not allowed to delete this transfer")
