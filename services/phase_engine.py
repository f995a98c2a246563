# services/phase_engine.py
"""
Phase transition service.

Entry point for moving a student's country application between phases:

    svc = PhaseTransitionService(profile_repository=..., metadata_repository=..., ...)
    outcome = svc.request_phase_transition(student_id, "USA", "SEVIS_FEE")
    if outcome.applied: ...

Order of work for a forward move: classify -> lock check -> document
gating -> payload validation -> profile update -> metadata (best effort)
-> side effects (best effort). Denials are returned as outcome objects;
only caller errors (unknown student / profile, missing country) raise.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

from services.countries import CountryCode
from services.document_requirements import (
    countable_types,
    describe_document,
    is_shared,
    missing_documents,
    required_documents,
)
from services.errors import CountryProfileNotFound, InvalidRequest, StudentNotFound
from services.gating import GatingEngine
from services.phase_catalog import DOCUMENT_COLLECTION, ENROLLMENT, PhaseCatalogProvider
from services.phase_metadata_store import PhaseMetadataStore
from services.phase_payloads import InvalidPayload, PayloadParser
from services.reopen_policy import PERMANENTLY_LOCKED, ReopenPolicy
from services.repositories import DEFAULT_MAX_REOPEN_ALLOWED, PhaseStatus
from services.transition_validator import Direction, INVALID_ORDER, classify

logger = logging.getLogger(__name__)

ACTIVITY_PHASE_CHANGE = "PHASE_CHANGE"
ACTIVITY_PHASE_REOPEN = "PHASE_REOPEN"
ACTIVITY_STATUS_UPDATE = "PHASE_STATUS_UPDATE"


# ---------------------------------------------------------------------------
# outcomes
# ---------------------------------------------------------------------------

class Outcome:
    status = ""
    code: Optional[str] = None
    applied = False

    def to_dict(self) -> Dict[str, Any]:
        raise NotImplementedError


@dataclass
class Applied(Outcome):
    new_phase: str
    previous_phase: Optional[str]
    phase_label: str
    phase_metadata: List[Dict[str, Any]] = field(default_factory=list)
    payloads: List[str] = field(default_factory=list)
    reopened: bool = False
    is_final_edit: bool = False
    reset_phases: Tuple[str, ...] = ()

    status = "Applied"
    applied = True

    def to_dict(self):
        if self.reopened:
            message = f"Phase reopened: {self.phase_label}"
            if self.is_final_edit:
                message += ". This is the final edit allowed for this phase."
        else:
            message = f"Phase updated to {self.phase_label}"
        return {
            "status": self.status,
            "message": message,
            "new_phase": self.new_phase,
            "previous_phase": self.previous_phase,
            "phase_label": self.phase_label,
            "phase_metadata": self.phase_metadata,
            "payloads": self.payloads,
            "reopened": self.reopened,
            "is_final_edit": self.is_final_edit,
            "reset_phases": list(self.reset_phases),
        }


@dataclass
class NoOp(Outcome):
    phase: str
    phase_label: str
    payload_saved: List[str] = field(default_factory=list)

    status = "NoOp"

    def to_dict(self):
        return {
            "status": self.status,
            "message": f"Phase unchanged: {self.phase_label}",
            "phase": self.phase,
            "phase_label": self.phase_label,
            "payload_saved": self.payload_saved,
        }


@dataclass
class DeniedMissingDocuments(Outcome):
    phase_key: str
    phase_label: str
    missing_document_types: List[str]
    country: str
    document_details: List[Dict[str, str]] = field(default_factory=list)
    exit_gate: bool = False

    status = "Denied"
    code = "MISSING_DOCUMENTS"

    def to_dict(self):
        if self.exit_gate:
            message = f"Cannot leave {self.phase_label}. Please upload: {', '.join(self.missing_document_types)}"
        else:
            message = f"Cannot move to {self.phase_label}. Missing documents: {', '.join(self.missing_document_types)}"
        return {
            "status": self.status,
            "code": self.code,
            "message": message,
            "phase_key": self.phase_key,
            "phase_label": self.phase_label,
            "country": self.country,
            "missing_document_types": self.missing_document_types,
            "document_details": self.document_details,
        }


@dataclass
class DeniedLocked(Outcome):
    phase_key: str
    phase_label: str
    reason: str = "This phase is permanently locked. Maximum updates reached."

    status = "Denied"
    code = "PHASE_LOCKED"

    def to_dict(self):
        return {"status": self.status, "code": self.code, "message": self.reason,
                "phase_key": self.phase_key, "phase_label": self.phase_label}


@dataclass
class DeniedInvalidOrder(Outcome):
    reason: str
    code: str = INVALID_ORDER

    status = "Denied"

    def to_dict(self):
        return {"status": self.status, "code": self.code, "message": self.reason}


@dataclass
class DeniedNotReopenable(Outcome):
    reason: str
    code: str = INVALID_ORDER

    status = "Denied"

    def to_dict(self):
        return {"status": self.status, "code": self.code, "message": self.reason}


@dataclass
class DeniedInvalidPayload(Outcome):
    reason: str
    details: Dict[str, Any] = field(default_factory=dict)

    status = "Denied"
    code = "INVALID_PAYLOAD"

    def to_dict(self):
        out = {"status": self.status, "code": self.code, "message": self.reason}
        out.update(self.details)
        return out


# ---------------------------------------------------------------------------
# service
# ---------------------------------------------------------------------------

class PhaseTransitionService:
    def __init__(self, profile_repository, metadata_repository, catalog_source=None, document_source=None,
                 university_source=None, activity_log=None, notification_sink=None,
                 cache_invalidator: Optional[Callable[[List[str]], None]] = None,
                 max_reopen_allowed: int = DEFAULT_MAX_REOPEN_ALLOWED):
        self.profiles = profile_repository
        self.catalogs = PhaseCatalogProvider(catalog_source)
        self.store = PhaseMetadataStore(metadata_repository, max_reopen_allowed)
        self.gating = GatingEngine(document_source)
        self.reopen_policy = ReopenPolicy(self.store, profile_repository)
        self.payloads = PayloadParser(profile_repository, university_source)
        self.activity_log = activity_log
        self.notification_sink = notification_sink
        self.cache_invalidator = cache_invalidator

    # --- lookups -----------------------------------------------------------

    @staticmethod
    def _country(country) -> CountryCode:
        try:
            return CountryCode.parse(country)
        except ValueError as e:
            raise InvalidRequest(str(e))

    def _student(self, student_id):
        student = self.profiles.get_student(student_id)
        if student is None:
            raise StudentNotFound(student_id)
        return student

    def _profile(self, student_id, code: CountryCode):
        profile = self.profiles.get_profile(student_id, code.key)
        if profile is None:
            raise CountryProfileNotFound(student_id, code.key)
        return profile

    def get_catalog(self, country):
        return self.catalogs.get_catalog(self._country(country))

    # --- transitions -------------------------------------------------------

    def request_phase_transition(self, student_id, country, requested_phase, extra_payload=None,
                                 actor_id=None, remarks=None) -> Outcome:
        if not requested_phase:
            raise InvalidRequest("currentPhase is required")
        code = self._country(country)
        student = self._student(student_id)
        profile = self._profile(student_id, code)
        catalog = self.catalogs.get_catalog(code)
        from_phase = profile.current_phase
        label = catalog.label_for(requested_phase)

        if from_phase == requested_phase:
            return self._status_update(student, profile, catalog, requested_phase, extra_payload, actor_id, remarks)

        target_meta = self.store.find(student_id, code, requested_phase)
        cls = classify(catalog, from_phase, requested_phase, target_meta, intent=Direction.FORWARD)
        if not cls.ok:
            return DeniedInvalidOrder(cls.reason, code=cls.error)

        if cls.direction == Direction.BACKWARD:
            return self._reopen(student, profile, catalog, requested_phase, actor_id, extra_payload, remarks)

        if target_meta is not None and (target_meta.is_locked or not target_meta.final_edit_allowed):
            return DeniedLocked(requested_phase, label)

        gate = self.gating.authorize_forward_transition(student_id, code, from_phase, requested_phase, catalog=catalog)
        if not gate.allowed:
            logger.info(f"[phase] student {student_id} {code} -> {requested_phase} blocked at "
                        f"{gate.phase_key}: missing {list(gate.missing_document_types)}")
            return DeniedMissingDocuments(
                phase_key=gate.phase_key,
                phase_label=gate.phase_label,
                missing_document_types=list(gate.missing_document_types),
                country=code.key,
                document_details=gate.document_details,
                exit_gate=gate.exit_gate,
            )

        try:
            payloads = self.payloads.parse(student_id, code.key, requested_phase, extra_payload, remarks)
        except InvalidPayload as e:
            return DeniedInvalidPayload(e.reason, e.details)

        self.profiles.update_current_phase(student_id, code.key, requested_phase)
        self._advance_metadata(student_id, code, catalog, from_phase, requested_phase)
        saved = self._save_payloads(student_id, code, payloads)
        if requested_phase == ENROLLMENT:
            self.profiles.mark_student_completed(student_id)

        logger.info(f"[phase] student {student_id} {code}: {from_phase} -> {requested_phase}")
        description = f"Phase updated from {catalog.label_for(from_phase)} to {label}"
        self._emit(ACTIVITY_PHASE_CHANGE, student, code, description, actor_id, remarks, {
            "previousPhase": from_phase,
            "newPhase": requested_phase,
            "payloads": saved,
        })
        return Applied(
            new_phase=requested_phase,
            previous_phase=from_phase,
            phase_label=label,
            phase_metadata=self._snapshot(student_id, code, catalog),
            payloads=saved,
        )

    def request_phase_reopen(self, student_id, country, target_phase, actor_id=None) -> Outcome:
        if not target_phase:
            raise InvalidRequest("phaseName is required")
        code = self._country(country)
        student = self._student(student_id)
        profile = self._profile(student_id, code)
        catalog = self.catalogs.get_catalog(code)
        return self._reopen(student, profile, catalog, target_phase, actor_id)

    def _reopen(self, student, profile, catalog, target_phase, actor_id, extra_payload=None, remarks=None) -> Outcome:
        code = CountryCode.parse(profile.country_key)
        payloads = []
        if extra_payload:
            try:
                payloads = self.payloads.parse(student.id, code.key, target_phase, extra_payload, remarks)
            except InvalidPayload as e:
                return DeniedInvalidPayload(e.reason, e.details)

        result = self.reopen_policy.reopen(student.id, code, target_phase, catalog, profile.current_phase)
        if not result.applied:
            if result.denial == PERMANENTLY_LOCKED:
                return DeniedLocked(target_phase, result.phase_label, result.reason)
            return DeniedNotReopenable(result.reason, code=result.denial)

        saved = self._save_payloads(student.id, code, payloads)
        description = f"Phase reopened: {result.phase_label}"
        if result.is_final_edit:
            description += " (final edit)"
        self._emit(ACTIVITY_PHASE_REOPEN, student, code, description, actor_id, remarks, {
            "previousPhase": result.previous_phase,
            "reopenedPhase": target_phase,
            "reopenCount": result.metadata.reopen_count if result.metadata else None,
            "isFinalEdit": result.is_final_edit,
        })
        return Applied(
            new_phase=target_phase,
            previous_phase=result.previous_phase,
            phase_label=result.phase_label,
            phase_metadata=self._snapshot(student.id, code, catalog),
            payloads=saved,
            reopened=True,
            is_final_edit=result.is_final_edit,
            reset_phases=result.reset_phases,
        )

    def _status_update(self, student, profile, catalog, phase, extra_payload, actor_id, remarks) -> Outcome:
        """Same phase requested again: no state change, but status payloads are still recorded."""
        code = CountryCode.parse(profile.country_key)
        try:
            payloads = self.payloads.parse(student.id, code.key, phase, extra_payload, remarks)
        except InvalidPayload as e:
            return DeniedInvalidPayload(e.reason, e.details)

        saved = self._save_payloads(student.id, code, payloads)
        label = catalog.label_for(phase)
        if saved:
            details = "; ".join(p.describe() for p in payloads)
            self._emit(ACTIVITY_STATUS_UPDATE, student, code, f"{label}: {details}", actor_id, remarks, {
                "phase": phase,
                "payloads": saved,
            })
        return NoOp(phase=phase, phase_label=label, payload_saved=saved)

    # --- metadata ----------------------------------------------------------

    def _advance_metadata(self, student_id, code, catalog, from_phase, to_phase):
        """previous -> Completed (Locked once over budget), skipped -> Completed, target -> Current, later -> Pending."""
        store = self.store
        if not store.tracking_enabled:
            return
        try:
            if from_phase:
                prev = store.get_or_create(student_id, code, from_phase, PhaseStatus.CURRENT)
                if not prev.is_locked:
                    over_budget = prev.reopen_count > prev.max_reopen_allowed
                    store.set_status(student_id, code, from_phase,
                                     PhaseStatus.LOCKED if over_budget else PhaseStatus.COMPLETED)

            for phase in catalog.between(from_phase, to_phase):
                existing = store.find(student_id, code, phase.key)
                if existing is None or existing.status not in (PhaseStatus.COMPLETED, PhaseStatus.LOCKED):
                    store.set_status(student_id, code, phase.key, PhaseStatus.COMPLETED)

            store.set_status(student_id, code, to_phase, PhaseStatus.CURRENT)
        except Exception as e:
            logger.warning(f"[phase] metadata update failed for student {student_id} {code}, profile already moved: {e}")

        self.reopen_policy.cascade_pending(student_id, code, to_phase, catalog)

    def _snapshot(self, student_id, code, catalog) -> List[Dict[str, Any]]:
        try:
            records = self.store.list_for(student_id, code)
        except Exception as e:
            logger.warning(f"[phase] could not read phase metadata for student {student_id} {code}: {e}")
            return []
        size = len(catalog)
        records.sort(key=lambda r: (catalog.index_of(r.phase_name) if r.phase_name in catalog else size, r.phase_name))
        out = []
        for r in records:
            d = r.to_dict()
            d["phase_label"] = catalog.label_for(r.phase_name)
            out.append(d)
        return out

    def get_phase_metadata(self, student_id, country) -> List[Dict[str, Any]]:
        code = self._country(country)
        return self._snapshot(student_id, code, self.catalogs.get_catalog(code))

    # --- payloads / side effects ------------------------------------------

    def _save_payloads(self, student_id, code, payloads) -> List[str]:
        saved = []
        for p in payloads:
            self.profiles.save_phase_payload(student_id, code.key, p.phase_key, p.category, p.to_dict())
            saved.append(p.category)
        return saved

    def _emit(self, activity_type, student, code, description, actor_id, remarks, meta):
        text = f"[{code.display_name}] {description}"
        if remarks:
            text += f". Remarks: {remarks}"
        meta = dict(meta, country=code.key, remarks=remarks)

        if self.activity_log is not None:
            try:
                self.activity_log.record(activity_type, text, student.id, actor_id, meta)
            except Exception as e:
                logger.warning(f"[phase] activity log write failed for student {student.id}: {e}")

        if self.notification_sink is not None:
            payload = {
                "type": "application_progress",
                "title": "Application Progress Update",
                "message": f"{student.full_name}: {text}" if student.full_name else text,
                "priority": "medium",
                "lead_id": student.id,
                "meta": dict(meta, activityType=activity_type),
            }
            recipients = []
            for uid in (student.marketing_owner_id, student.counselor_id):
                if uid and uid not in recipients:
                    recipients.append(uid)
            for uid in recipients:
                try:
                    self.notification_sink.notify(uid, payload)
                except Exception as e:
                    logger.warning(f"[notify] notification to user {uid} failed: {e}")

        if self.cache_invalidator is not None and student.counselor_id:
            keys = [f"dashboard:{student.counselor_id}", f"students:{student.counselor_id}*"]
            try:
                self.cache_invalidator(keys)
            except Exception as e:
                logger.warning(f"[phase] cache invalidation failed for {keys}: {e}")

    # --- supplements -------------------------------------------------------

    def get_phase_requirements(self, student_id, country, phase=None) -> Dict[str, Any]:
        code = self._country(country)
        self._student(student_id)
        catalog = self.catalogs.get_catalog(code)
        if not phase:
            phase = self._profile(student_id, code).current_phase
        label = catalog.label_for(phase)
        required = required_documents(phase, label, code)
        present = countable_types(self.gating.load_documents(student_id))
        missing = missing_documents(required, present)
        return {
            "country": code.key,
            "phase": phase,
            "phase_label": label,
            "documents": [
                {
                    "type": t,
                    "description": describe_document(t),
                    "shared": is_shared(t),
                    "satisfied": t not in missing,
                }
                for t in required
            ],
            "missing_document_types": missing,
            "satisfied_document_types": [t for t in required if t not in missing],
        }

    def list_country_profiles(self, student_id) -> List[Dict[str, Any]]:
        self._student(student_id)
        out = []
        for p in self.profiles.list_profiles(student_id):
            d = p.to_dict()
            d["current_phase_label"] = self.catalogs.get_catalog(p.country_key).label_for(p.current_phase)
            out.append(d)
        return out

    def create_country_profile(self, student_id, country):
        """Returns (profile, created). One profile per canonical country."""
        code = self._country(country)
        self._student(student_id)
        existing = self.profiles.get_profile(student_id, code.key)
        if existing is not None:
            return existing, False

        profile = self.profiles.create_profile(student_id, code.display_name, code.key, DOCUMENT_COLLECTION)
        try:
            self.store.update(student_id, code, DOCUMENT_COLLECTION, status=PhaseStatus.CURRENT)
        except Exception as e:
            logger.warning(f"[phase] could not seed metadata for new profile {student_id} {code}: {e}")
        logger.info(f"[phase] country profile created: student {student_id} {code}")
        return profile, True


def build_phase_service(cache_invalidator=None) -> PhaseTransitionService:
    """Service wired to the Flask-SQLAlchemy repositories of the current app."""
    from flask import current_app

    from services.notifications import DbNotificationSink
    from services.sql_repositories import (
        SqlActivityLog,
        SqlCatalogSource,
        SqlDocumentSource,
        SqlMetadataRepository,
        SqlProfileRepository,
        SqlUniversitySource,
    )

    if cache_invalidator is None:
        cache_invalidator = current_app.extensions.get("phase_cache_invalidator")
    return PhaseTransitionService(
        profile_repository=SqlProfileRepository(),
        metadata_repository=SqlMetadataRepository(),
        catalog_source=SqlCatalogSource(),
        document_source=SqlDocumentSource(),
        university_source=SqlUniversitySource(),
        activity_log=SqlActivityLog(),
        notification_sink=DbNotificationSink(),
        cache_invalidator=cache_invalidator,
        max_reopen_allowed=int(current_app.config.get("PHASE_MAX_REOPEN_ALLOWED", DEFAULT_MAX_REOPEN_ALLOWED)),
    )
