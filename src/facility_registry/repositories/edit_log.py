from __future__ import annotations

import json
from collections.abc import Iterable, Mapping
from datetime import datetime, timezone
from typing import Any

from facility_registry.core.mapper import parse_timestamp
from facility_registry.core.models import EditLogEntry, Facility


def edit_entry_to_document(entry: EditLogEntry) -> dict[str, Any]:
    document: dict[str, Any] = {
        "facilityId": entry.facility_id,
        "userId": entry.user_id,
        "action": entry.action,
        "status": entry.status,
        "changes": json.dumps(entry.changes, ensure_ascii=False, default=str),
        "timestamp": entry.timestamp.isoformat(),
    }
    if entry.user_name:
        document["userName"] = entry.user_name
    if entry.admin_notes:
        document["adminNotes"] = entry.admin_notes
    return document


def _changes(value: Any) -> dict[str, Any]:
    if isinstance(value, Mapping):
        return dict(value)
    if isinstance(value, str) and value.strip():
        try:
            parsed = json.loads(value)
        except ValueError:
            return {"raw": value}
        return parsed if isinstance(parsed, dict) else {"raw": parsed}
    return {}


def edit_entry_from_document(document: Mapping[str, Any]) -> EditLogEntry:
    timestamp = parse_timestamp(document.get("timestamp")) or parse_timestamp(document.get("$createdAt"))
    return EditLogEntry(
        id=str(document.get("$id") or "") or None,
        facility_id=str(document.get("facilityId") or ""),
        user_id=str(document.get("userId") or "anonymous"),
        user_name=document.get("userName") or None,
        action=str(document.get("action") or "updated"),
        changes=_changes(document.get("changes")),
        status=str(document.get("status") or "pending"),
        timestamp=timestamp or datetime.fromtimestamp(0, tz=timezone.utc),
        admin_notes=str(document.get("adminNotes") or ""),
    )


def seed_edit_entries(facilities: Iterable[Facility]) -> list[EditLogEntry]:
    """Synthetic ``seed`` history for the fallback dataset, newest first."""
    entries = [
        EditLogEntry(
            id=f"edit_{facility.id}",
            facility_id=facility.id,
            user_id="seed",
            action="seed",
            changes={"facilityName": facility.facility_name, "facilityStatus": facility.facility_status_raw},
            status="approved",
            timestamp=facility.updated_at or facility.created_at or datetime.fromtimestamp(0, tz=timezone.utc),
        )
        for facility in facilities
    ]
    return sorted(entries, key=lambda entry: entry.timestamp, reverse=True)
