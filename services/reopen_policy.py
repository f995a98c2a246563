# services/reopen_policy.py
"""
Reopen (backward move) and lock rules.

Only phases behind the current one can be reopened. A request for any other
phase is denied before the lock rules are looked at.

A completed phase may be reopened ``max_reopen_allowed`` times. The next
reopen attempt locks it for good. Reopening phase k resets every catalog
phase after k to Pending; phases before k are left alone.

The profile's current phase is written first. Metadata writes after that
are best effort: a failure is logged and the reopen still counts as
applied.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from services.countries import CountryCode
from services.repositories import PhaseMetadataRecord, PhaseStatus
from services.transition_validator import Direction, classify

logger = logging.getLogger(__name__)

PERMANENTLY_LOCKED = "PERMANENTLY_LOCKED"
NOT_A_PREVIOUS_PHASE = "NOT_A_PREVIOUS_PHASE"


@dataclass
class ReopenResult:
    applied: bool
    phase: str
    phase_label: str
    previous_phase: Optional[str] = None
    denial: Optional[str] = None
    reason: str = ""
    metadata: Optional[PhaseMetadataRecord] = None
    reset_phases: Tuple[str, ...] = field(default=())
    is_final_edit: bool = False


class ReopenPolicy:
    def __init__(self, metadata_store, profile_repository):
        self.metadata_store = metadata_store
        self.profile_repository = profile_repository

    def _lock(self, student_id, country, phase_key) -> Optional[PhaseMetadataRecord]:
        try:
            return self.metadata_store.update(student_id, country, phase_key,
                                              status=PhaseStatus.LOCKED, final_edit_allowed=False)
        except Exception as e:
            logger.warning(f"[reopen] could not persist lock for {phase_key}: {e}")
            return None

    def reopen(self, student_id, country, target_phase, catalog, current_phase) -> ReopenResult:
        code = CountryCode.parse(country)
        label = catalog.label_for(target_phase)
        store = self.metadata_store

        target_meta = store.find(student_id, code, target_phase)

        # only phases behind the current one are subject to the lock rules
        cls = classify(catalog, current_phase, target_phase, target_meta, intent=Direction.BACKWARD)
        if not cls.ok:
            return ReopenResult(False, target_phase, label, current_phase, cls.error, cls.reason)
        if cls.direction != Direction.BACKWARD:
            return ReopenResult(False, target_phase, label, current_phase, NOT_A_PREVIOUS_PHASE,
                                "Can only reopen previous phases. Use phase update to move forward.")

        if target_meta is not None:
            if target_meta.is_locked:
                return ReopenResult(False, target_phase, label, current_phase, PERMANENTLY_LOCKED,
                                    "This phase is permanently locked. Maximum updates reached.",
                                    metadata=target_meta)
            if target_meta.reopen_count >= target_meta.max_reopen_allowed:
                locked = self._lock(student_id, code, target_phase) or target_meta
                logger.info(f"[reopen] student {student_id} {code} {target_phase} locked after "
                            f"{target_meta.reopen_count} reopens")
                return ReopenResult(False, target_phase, label, current_phase, PERMANENTLY_LOCKED,
                                    "Maximum reopen attempts reached. This phase is now permanently locked.",
                                    metadata=locked)

        # primary write, errors propagate to the caller
        self.profile_repository.update_current_phase(student_id, code.key, target_phase)

        meta, reset, is_final = self._apply_metadata(student_id, code, target_phase, catalog)
        logger.info(f"[reopen] student {student_id} {code} {current_phase} -> {target_phase}"
                    f" (reopen_count={meta.reopen_count if meta else 'n/a'})")
        return ReopenResult(True, target_phase, label, current_phase,
                            metadata=meta, reset_phases=tuple(reset), is_final_edit=is_final)

    def _apply_metadata(self, student_id, code, target_phase, catalog):
        store = self.metadata_store
        meta, reset, is_final = None, [], False
        try:
            current = store.get_or_create(student_id, code, target_phase, PhaseStatus.COMPLETED)
            new_count = current.reopen_count + 1
            # over budget: this is the last edit, next completion locks it
            is_final = new_count > current.max_reopen_allowed
            meta = store.update(student_id, code, target_phase,
                                status=PhaseStatus.CURRENT,
                                reopen_count=new_count,
                                final_edit_allowed=not is_final) or current
        except Exception as e:
            logger.warning(f"[reopen] metadata update failed for {target_phase}, profile already moved: {e}")

        reset = self.cascade_pending(student_id, code, target_phase, catalog)
        return meta, reset, is_final

    def cascade_pending(self, student_id, country, phase_key, catalog) -> List[str]:
        """Reset every catalog phase after ``phase_key`` to Pending, skipping Locked ones."""
        store = self.metadata_store
        if not store.tracking_enabled:
            return []
        reset = []
        for phase in catalog.after(phase_key):
            try:
                existing = store.find(student_id, country, phase.key)
                if existing is not None and existing.is_locked:
                    continue
                if existing is None or existing.status != PhaseStatus.PENDING:
                    store.set_status(student_id, country, phase.key, PhaseStatus.PENDING)
                reset.append(phase.key)
            except Exception as e:
                logger.warning(f"[reopen] could not reset {phase.key} to Pending: {e}")
        return reset
