"""Cleanup: removes expired transfers and orphaned blobs.

Run standalone: python cleanup.py
Also scheduled in-process every CLEANUP_INTERVAL_SECONDS (see main.py).

Removal is eventual: a download that already opened its blob keeps reading
from the open handle after the record and blob are gone.
"""

import logging
from datetime import datetime, timedelta

import storage
from config import ORPHAN_GRACE_SECONDS
from api.transfers.errors import ServiceUnavailable
from api.transfers.repositories import transfers_repository
from api.transfers.services import expiry_service, transfers_service

logger = logging.getLogger(__name__)


def run_cleanup(now: datetime | None = None) -> int:
    """Delete expired transfers and orphaned blob directories.
    Returns the number of transfers cleaned up."""
    now = now or expiry_service.utcnow()
    count = 0

    # Expired transfers: blob first, then record
    for record in transfers_repository.list_expired(now):
        try:
            if transfers_service.remove_transfer(record):
                count += 1
        except ServiceUnavailable:
            logger.warning("Keeping expired transfer %s for the next sweep", record.link_id)

    # Orphaned blobs (stored but no record). Uploads still being written have
    # no record yet, so only old enough directories qualify.
    cutoff = now - timedelta(seconds=ORPHAN_GRACE_SECONDS)
    for prefix, modified in storage.blob_store.iter_prefixes():
        if modified < cutoff and not transfers_repository.link_id_exists(prefix):
            logger.info("Removing orphaned blob directory %s", prefix)
            storage.blob_store.delete_prefix(prefix)

    if count:
        logger.info("Cleaned up %d expired transfer%s", count, "s" if count != 1 else "")
    return count


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    run_cleanup()
