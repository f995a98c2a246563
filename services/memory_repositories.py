# services/memory_repositories.py
"""
In-memory collaborators.

Used by the test-suite and handy for running the engine without a
database. Same contracts as ``services.sql_repositories``.
"""
from __future__ import annotations

from dataclasses import replace
from typing import Any, Dict, Iterable, List, Optional, Tuple

from services.repositories import (
    CountryProfileRecord,
    PhaseMetadataRecord,
    StudentRecord,
    phase_payload_path,
    with_phase_payload,
)


class InMemoryCatalogSource:
    def __init__(self, catalogs: Optional[Dict[str, list]] = None):
        # canonical country key -> raw steps
        self.catalogs: Dict[str, list] = dict(catalogs or {})

    def fetch_country_catalog(self, country) -> Optional[list]:
        return self.catalogs.get(str(country))


class InMemoryDocumentSource:
    def __init__(self):
        self._docs: Dict[int, List[Dict[str, Any]]] = {}

    def add(self, student_id: int, doc_type: str, status: str = "PENDING") -> None:
        self._docs.setdefault(student_id, []).append({"type": doc_type, "status": status})

    def fetch_documents(self, student_id, status_filter: Optional[Iterable[str]] = None) -> List[Dict[str, Any]]:
        docs = list(self._docs.get(student_id, []))
        if status_filter:
            allowed = set(status_filter)
            docs = [d for d in docs if d["status"] in allowed]
        return docs


class InMemoryMetadataRepository:
    def __init__(self, supports_reopen_tracking: bool = True):
        self.supports_reopen_tracking = supports_reopen_tracking
        self._rows: Dict[Tuple[int, str, str], PhaseMetadataRecord] = {}
        self.fail_writes = False

    def _check_writable(self):
        if self.fail_writes:
            raise RuntimeError("metadata store unavailable")

    def find(self, student_id, country_key, phase_name) -> Optional[PhaseMetadataRecord]:
        row = self._rows.get((student_id, country_key, phase_name))
        return replace(row) if row else None

    def create(self, record: PhaseMetadataRecord) -> PhaseMetadataRecord:
        self._check_writable()
        key = (record.student_id, record.country_key, record.phase_name)
        self._rows[key] = replace(record, persisted=True)
        return replace(self._rows[key])

    def update(self, student_id, country_key, phase_name, fields: Dict[str, Any]) -> Optional[PhaseMetadataRecord]:
        self._check_writable()
        key = (student_id, country_key, phase_name)
        row = self._rows.get(key)
        if row is None:
            return None
        allowed = {k: v for k, v in fields.items()
                   if k in ("status", "reopen_count", "max_reopen_allowed", "final_edit_allowed")}
        self._rows[key] = replace(row, **allowed)
        return replace(self._rows[key])

    def list(self, student_id, country_key) -> List[PhaseMetadataRecord]:
        return [replace(r) for (sid, ck, _), r in self._rows.items() if sid == student_id and ck == country_key]


class InMemoryProfileRepository:
    def __init__(self):
        self.students: Dict[int, StudentRecord] = {}
        self.profiles: Dict[Tuple[int, str], CountryProfileRecord] = {}
        self._next_id = 1

    def add_student(self, student_id: int, full_name: str = "", counselor_id=None, marketing_owner_id=None) -> StudentRecord:
        rec = StudentRecord(id=student_id, full_name=full_name, counselor_id=counselor_id,
                            marketing_owner_id=marketing_owner_id)
        self.students[student_id] = rec
        return rec

    def get_student(self, student_id) -> Optional[StudentRecord]:
        return self.students.get(student_id)

    def mark_student_completed(self, student_id) -> None:
        rec = self.students.get(student_id)
        if rec:
            rec.status = "COMPLETED"

    def get_profile(self, student_id, country_key) -> Optional[CountryProfileRecord]:
        rec = self.profiles.get((student_id, country_key))
        return replace(rec, notes=dict(rec.notes)) if rec else None

    def list_profiles(self, student_id) -> List[CountryProfileRecord]:
        return [replace(p) for (sid, _), p in self.profiles.items() if sid == student_id]

    def create_profile(self, student_id, country, country_key, current_phase) -> CountryProfileRecord:
        rec = CountryProfileRecord(id=self._next_id, student_id=student_id, country=country,
                                   country_key=country_key, current_phase=current_phase, notes={})
        self._next_id += 1
        self.profiles[(student_id, country_key)] = rec
        return replace(rec)

    def update_current_phase(self, student_id, country_key, phase) -> CountryProfileRecord:
        rec = self.profiles.get((student_id, country_key))
        if rec is None:
            raise LookupError(f"no country profile for student {student_id} / {country_key}")
        rec.current_phase = phase
        return replace(rec)

    def get_phase_payload(self, student_id, country_key, phase_key, category):
        rec = self.profiles.get((student_id, country_key))
        return phase_payload_path(rec.notes if rec else None, phase_key, category)

    def save_phase_payload(self, student_id, country_key, phase_key, category, data) -> None:
        rec = self.profiles.get((student_id, country_key))
        if rec is None:
            raise LookupError(f"no country profile for student {student_id} / {country_key}")
        rec.notes = with_phase_payload(rec.notes, phase_key, category, data)


class InMemoryUniversitySource:
    def __init__(self, universities: Optional[List[Dict[str, Any]]] = None):
        self.universities = {u["id"]: u for u in (universities or [])}

    def fetch_universities(self, ids: Iterable) -> List[Dict[str, Any]]:
        out = []
        for raw in ids or []:
            try:
                u = self.universities.get(int(raw))
            except (TypeError, ValueError):
                continue
            if u and u.get("active", True):
                out.append({k: u.get(k) for k in ("id", "name", "country", "city")})
        return out


class InMemoryActivityLog:
    def __init__(self):
        self.entries: List[Dict[str, Any]] = []

    def record(self, type, description, student_id, user_id, meta) -> None:
        self.entries.append({
            "type": type,
            "description": description,
            "student_id": student_id,
            "user_id": user_id,
            "meta": meta or {},
        })


class RecordingNotificationSink:
    def __init__(self, fail: bool = False):
        self.sent: List[Tuple[int, Dict[str, Any]]] = []
        self.fail = fail

    def notify(self, target_user_id, payload) -> None:
        if self.fail:
            raise RuntimeError("notification transport down")
        self.sent.append((target_user_id, payload))
