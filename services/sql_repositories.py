# services/sql_repositories.py
"""Flask-SQLAlchemy implementations of the repository protocols."""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import inspect
from sqlalchemy.exc import SQLAlchemyError

from extensions import db
from models.activity import Activity
from models.application import ApplicationCountry, PhaseMetadata
from models.country_process import CountryApplicationProcess
from models.document import Document
from models.student import Student
from models.university import University
from services.repositories import (
    CountryProfileRecord,
    PhaseMetadataRecord,
    StudentRecord,
    phase_payload_path,
    with_phase_payload,
)

logger = logging.getLogger(__name__)

_METADATA_FIELDS = ("status", "reopen_count", "max_reopen_allowed", "final_edit_allowed")


def _commit():
    try:
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        raise


class SqlCatalogSource:
    def fetch_country_catalog(self, country) -> Optional[list]:
        row = (
            CountryApplicationProcess.query
            .filter_by(country_key=str(country), is_active=True)
            .order_by(CountryApplicationProcess.updated_at.desc())
            .first()
        )
        if not row:
            return None
        return row.steps or None


class SqlDocumentSource:
    def fetch_documents(self, student_id: int, status_filter: Optional[Iterable[str]] = None) -> List[Dict[str, Any]]:
        q = Document.query.filter_by(student_id=student_id)
        if status_filter:
            q = q.filter(Document.status.in_(list(status_filter)))
        return [{"type": d.type, "status": d.status} for d in q.all()]


def _meta_record(row: PhaseMetadata) -> PhaseMetadataRecord:
    return PhaseMetadataRecord(
        student_id=row.student_id,
        country_key=row.country_key,
        phase_name=row.phase_name,
        status=row.status,
        reopen_count=row.reopen_count or 0,
        max_reopen_allowed=row.max_reopen_allowed if row.max_reopen_allowed is not None else 2,
        final_edit_allowed=bool(row.final_edit_allowed),
    )


class SqlMetadataRepository:
    """
    Phase metadata rows.

    Older databases were created before ``phase_metadata`` existed; in that
    case ``supports_reopen_tracking`` is False and the engine runs without
    reopen counting / locking.
    """

    def __init__(self, supports_reopen_tracking: Optional[bool] = None):
        if supports_reopen_tracking is None:
            supports_reopen_tracking = self._table_exists()
        self.supports_reopen_tracking = supports_reopen_tracking

    @staticmethod
    def _table_exists() -> bool:
        try:
            return inspect(db.engine).has_table(PhaseMetadata.__tablename__)
        except SQLAlchemyError as e:
            logger.warning(f"[phase] could not inspect phase_metadata table: {e}")
            return False

    def _row(self, student_id, country_key, phase_name) -> Optional[PhaseMetadata]:
        return PhaseMetadata.query.filter_by(
            student_id=student_id, country_key=country_key, phase_name=phase_name
        ).first()

    def find(self, student_id, country_key, phase_name) -> Optional[PhaseMetadataRecord]:
        row = self._row(student_id, country_key, phase_name)
        return _meta_record(row) if row else None

    def create(self, record: PhaseMetadataRecord) -> PhaseMetadataRecord:
        row = PhaseMetadata(
            student_id=record.student_id,
            country_key=record.country_key,
            phase_name=record.phase_name,
            status=record.status,
            reopen_count=record.reopen_count,
            max_reopen_allowed=record.max_reopen_allowed,
            final_edit_allowed=record.final_edit_allowed,
        )
        db.session.add(row)
        _commit()
        return _meta_record(row)

    def update(self, student_id, country_key, phase_name, fields: Dict[str, Any]) -> Optional[PhaseMetadataRecord]:
        row = self._row(student_id, country_key, phase_name)
        if not row:
            return None
        for key in _METADATA_FIELDS:
            if key in fields:
                setattr(row, key, fields[key])
        _commit()
        return _meta_record(row)

    def list(self, student_id, country_key) -> List[PhaseMetadataRecord]:
        rows = (
            PhaseMetadata.query
            .filter_by(student_id=student_id, country_key=country_key)
            .order_by(PhaseMetadata.id.asc())
            .all()
        )
        return [_meta_record(r) for r in rows]


def _profile_record(row: ApplicationCountry) -> CountryProfileRecord:
    return CountryProfileRecord(
        id=row.id,
        student_id=row.student_id,
        country=row.country,
        country_key=row.country_key,
        current_phase=row.current_phase,
        notes=dict(row.notes or {}),
    )


class SqlProfileRepository:
    def get_student(self, student_id) -> Optional[StudentRecord]:
        s = db.session.get(Student, student_id)
        if not s:
            return None
        return StudentRecord(
            id=s.id,
            full_name=s.full_name,
            counselor_id=s.counselor_id,
            marketing_owner_id=s.marketing_owner_id,
            status=s.status,
        )

    def mark_student_completed(self, student_id) -> None:
        s = db.session.get(Student, student_id)
        if s and s.status != "COMPLETED":
            s.status = "COMPLETED"
            _commit()

    def _row(self, student_id, country_key) -> Optional[ApplicationCountry]:
        return ApplicationCountry.query.filter_by(student_id=student_id, country_key=country_key).first()

    def get_profile(self, student_id, country_key) -> Optional[CountryProfileRecord]:
        row = self._row(student_id, country_key)
        return _profile_record(row) if row else None

    def list_profiles(self, student_id) -> List[CountryProfileRecord]:
        rows = (
            ApplicationCountry.query
            .filter_by(student_id=student_id)
            .order_by(ApplicationCountry.created_at.asc(), ApplicationCountry.id.asc())
            .all()
        )
        return [_profile_record(r) for r in rows]

    def create_profile(self, student_id, country, country_key, current_phase) -> CountryProfileRecord:
        row = ApplicationCountry(
            student_id=student_id,
            country=country,
            country_key=country_key,
            current_phase=current_phase,
            notes={},
            total_applications=0,
        )
        db.session.add(row)
        _commit()
        return _profile_record(row)

    def update_current_phase(self, student_id, country_key, phase) -> CountryProfileRecord:
        row = self._row(student_id, country_key)
        if row is None:
            raise LookupError(f"no country profile for student {student_id} / {country_key}")
        row.current_phase = phase
        row.last_updated = datetime.utcnow()
        _commit()
        return _profile_record(row)

    def get_phase_payload(self, student_id, country_key, phase_key, category) -> Optional[Dict[str, Any]]:
        row = self._row(student_id, country_key)
        if row is None:
            return None
        return phase_payload_path(row.notes, phase_key, category)

    def save_phase_payload(self, student_id, country_key, phase_key, category, data) -> None:
        row = self._row(student_id, country_key)
        if row is None:
            raise LookupError(f"no country profile for student {student_id} / {country_key}")
        # JSON columns only persist on reassignment
        row.notes = with_phase_payload(row.notes, phase_key, category, data)
        row.last_updated = datetime.utcnow()
        _commit()


class SqlUniversitySource:
    def fetch_universities(self, ids: Iterable) -> List[Dict[str, Any]]:
        wanted = []
        for raw in ids or []:
            try:
                wanted.append(int(raw))
            except (TypeError, ValueError):
                continue
        if not wanted:
            return []
        rows = University.query.filter(University.id.in_(wanted), University.active.is_(True)).all()
        return [u.to_dict() for u in rows]


class SqlActivityLog:
    def record(self, type, description, student_id, user_id, meta) -> None:
        db.session.add(Activity(
            type=type,
            description=description,
            student_id=student_id,
            user_id=user_id,
            meta=meta or {},
        ))
        _commit()
