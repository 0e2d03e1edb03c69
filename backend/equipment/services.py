"""
Database side of the upload flow.

`confirm_upload` is the only place that creates `Upload` rows.  It runs the
retention check, the upload insert and the row insert inside one
transaction so a failure halfway never leaves an upload without its rows.
"""
from __future__ import annotations

import logging
from typing import Iterable

from django.conf import settings
from django.db import DatabaseError, transaction
from django.db.models import Max

from .exceptions import InvalidFormatError, PersistenceError
from .ingestion import NormalizedRow, is_retained, summarize
from .models import EquipmentRow, Profile, Upload

logger = logging.getLogger(__name__)

NEWEST_FIRST = ("-created_at", "-sequence")


def max_uploads_per_user() -> int:
    return getattr(settings, "EQUIPMENT_MAX_UPLOADS_PER_USER", 5)


def enforce_retention(user, keep: int | None = None) -> list:
    """
    Make room for one more upload so the user ends up with at most `keep`.

    Returns the ids of the uploads that were deleted (oldest first out).
    Call this inside the transaction that inserts the new upload.
    """
    keep = max_uploads_per_user() if keep is None else keep
    existing_ids = list(
        Upload.objects.filter(user=user).order_by(*NEWEST_FIRST).values_list("id", flat=True)
    )
    if len(existing_ids) < keep:
        return []

    to_delete = existing_ids[max(keep - 1, 0):]
    Upload.objects.filter(id__in=to_delete).delete()
    logger.info("Evicted %d old upload(s) for user %s", len(to_delete), user.pk)
    return to_delete


def confirm_upload(user, filename: str, rows: Iterable[NormalizedRow]) -> Upload:
    """
    Persist a previewed upload together with its rows.

    The summary is always recomputed here from the rows we are about to
    store, so what the dashboards show matches the database.
    """
    retained = [row for row in rows if is_retained(row)]
    if not retained:
        raise InvalidFormatError()

    summary = summarize(retained)

    try:
        with transaction.atomic():
            # Serialises concurrent confirmations for the same account.
            Profile.objects.select_for_update().get_or_create(user=user)
            last = Upload.objects.filter(user=user).aggregate(last=Max("sequence"))["last"]
            enforce_retention(user)

            upload = Upload.objects.create(
                user=user,
                filename=filename,
                sequence=(last or 0) + 1,
                record_count=len(retained),
                summary=summary.as_dict(),
            )
            EquipmentRow.objects.bulk_create(
                [
                    EquipmentRow(
                        upload=upload,
                        user=user,
                        position=index,
                        equipment_name=row.equipment_name,
                        equipment_type=row.equipment_type,
                        flowrate=row.flowrate,
                        pressure=row.pressure,
                        temperature=row.temperature,
                    )
                    for index, row in enumerate(retained)
                ]
            )
    except DatabaseError as exc:
        logger.exception("Could not store upload %r for user %s", filename, user.pk)
        raise PersistenceError() from exc

    logger.info(
        "Stored upload %s (%r, %d rows) for user %s",
        upload.pk,
        filename,
        upload.record_count,
        user.pk,
    )
    return upload


def delete_all_data(user) -> int:
    """Remove every upload (and, by cascade, every row) owned by `user`."""
    deleted, _ = Upload.objects.filter(user=user).delete()
    logger.info("Deleted all equipment data for user %s", user.pk)
    return deleted
