# services/phase_metadata_store.py
"""
Per (student, country, phase) lifecycle metadata.

Rows are created lazily on first reference. When the metadata repository
reports ``supports_reopen_tracking = False`` (database predates the
table), every read hands out an unsaved default and writes are no-ops, so
gating and phase advancement keep working without reopen limits.
"""
from __future__ import annotations

import logging
from typing import List, Optional

from services.countries import CountryCode
from services.repositories import DEFAULT_MAX_REOPEN_ALLOWED, PhaseMetadataRecord, PhaseStatus

logger = logging.getLogger(__name__)


class PhaseMetadataStore:
    def __init__(self, repository, max_reopen_allowed: int = DEFAULT_MAX_REOPEN_ALLOWED):
        self.repository = repository
        self.max_reopen_allowed = max_reopen_allowed

    @property
    def tracking_enabled(self) -> bool:
        return bool(getattr(self.repository, "supports_reopen_tracking", False))

    def _default(self, student_id, country_key, phase_key, status, persisted) -> PhaseMetadataRecord:
        return PhaseMetadataRecord(
            student_id=student_id,
            country_key=country_key,
            phase_name=phase_key,
            status=status,
            reopen_count=0,
            max_reopen_allowed=self.max_reopen_allowed,
            final_edit_allowed=True,
            persisted=persisted,
        )

    def find(self, student_id, country, phase_key) -> Optional[PhaseMetadataRecord]:
        if not self.tracking_enabled:
            return None
        return self.repository.find(student_id, CountryCode.parse(country).key, phase_key)

    def get_or_create(self, student_id, country, phase_key, default_status=PhaseStatus.PENDING) -> PhaseMetadataRecord:
        key = CountryCode.parse(country).key
        if not self.tracking_enabled:
            return self._default(student_id, key, phase_key, default_status, persisted=False)

        existing = self.repository.find(student_id, key, phase_key)
        if existing is not None:
            return existing
        return self.repository.create(self._default(student_id, key, phase_key, default_status, persisted=True))

    def update(self, student_id, country, phase_key, **fields) -> Optional[PhaseMetadataRecord]:
        """
        Apply ``fields`` to the phase's metadata, creating the row first if needed.

        - Locked always carries final_edit_allowed = False
        - reopen_count never goes down
        Returns None when tracking is unavailable.
        """
        if not self.tracking_enabled:
            return None

        status = fields.get("status")
        if status is not None and status not in PhaseStatus.ALL:
            raise ValueError(f"unknown phase status: {status}")
        current = self.get_or_create(student_id, country, phase_key, status or PhaseStatus.PENDING)
        if status == PhaseStatus.LOCKED:
            fields["final_edit_allowed"] = False
        if "reopen_count" in fields and fields["reopen_count"] < current.reopen_count:
            raise ValueError(
                f"reopen_count for {phase_key} cannot decrease ({current.reopen_count} -> {fields['reopen_count']})"
            )

        return self.repository.update(student_id, current.country_key, phase_key, fields)

    def set_status(self, student_id, country, phase_key, status) -> Optional[PhaseMetadataRecord]:
        return self.update(student_id, country, phase_key, status=status)

    def list_for(self, student_id, country) -> List[PhaseMetadataRecord]:
        if not self.tracking_enabled:
            return []
        return self.repository.list(student_id, CountryCode.parse(country).key)
