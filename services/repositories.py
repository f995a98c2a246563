# services/repositories.py
"""
Collaborator contracts the phase engine talks to.

The engine never touches Flask-SQLAlchemy models directly; it reads and
writes these plain records through the protocols below. SQLAlchemy
implementations live in ``services.sql_repositories``, in-memory ones in
``services.memory_repositories``.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Protocol


class PhaseStatus:
    PENDING = "Pending"
    CURRENT = "Current"
    COMPLETED = "Completed"
    LOCKED = "Locked"

    ALL = (PENDING, CURRENT, COMPLETED, LOCKED)


DEFAULT_MAX_REOPEN_ALLOWED = 2


@dataclass
class PhaseMetadataRecord:
    student_id: int
    country_key: str
    phase_name: str
    status: str = PhaseStatus.PENDING
    reopen_count: int = 0
    max_reopen_allowed: int = DEFAULT_MAX_REOPEN_ALLOWED
    final_edit_allowed: bool = True
    # False for the in-memory default handed out when tracking is unavailable
    persisted: bool = True

    @property
    def is_locked(self) -> bool:
        return self.status == PhaseStatus.LOCKED

    @property
    def edits_left(self) -> int:
        return max(0, self.max_reopen_allowed + 1 - self.reopen_count)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "phase_name": self.phase_name,
            "status": self.status,
            "reopen_count": self.reopen_count,
            "max_reopen_allowed": self.max_reopen_allowed,
            "final_edit_allowed": self.final_edit_allowed,
            "edits_left": self.edits_left,
        }


@dataclass
class StudentRecord:
    id: int
    full_name: str = ""
    counselor_id: Optional[int] = None
    marketing_owner_id: Optional[int] = None
    status: str = "ACTIVE"


@dataclass
class CountryProfileRecord:
    id: Optional[int]
    student_id: int
    country: str
    country_key: str
    current_phase: str
    notes: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class CatalogSource(Protocol):
    def fetch_country_catalog(self, country) -> Optional[list]: ...


class DocumentSource(Protocol):
    def fetch_documents(self, student_id: int, status_filter: Optional[Iterable[str]] = None) -> List[Dict[str, Any]]: ...


class MetadataRepository(Protocol):
    supports_reopen_tracking: bool

    def find(self, student_id: int, country_key: str, phase_name: str) -> Optional[PhaseMetadataRecord]: ...
    def create(self, record: PhaseMetadataRecord) -> PhaseMetadataRecord: ...
    def update(self, student_id: int, country_key: str, phase_name: str, fields: Dict[str, Any]) -> Optional[PhaseMetadataRecord]: ...
    def list(self, student_id: int, country_key: str) -> List[PhaseMetadataRecord]: ...


class ProfileRepository(Protocol):
    def get_student(self, student_id: int) -> Optional[StudentRecord]: ...
    def mark_student_completed(self, student_id: int) -> None: ...
    def get_profile(self, student_id: int, country_key: str) -> Optional[CountryProfileRecord]: ...
    def list_profiles(self, student_id: int) -> List[CountryProfileRecord]: ...
    def create_profile(self, student_id: int, country: str, country_key: str, current_phase: str) -> CountryProfileRecord: ...
    def update_current_phase(self, student_id: int, country_key: str, phase: str) -> CountryProfileRecord: ...
    def get_phase_payload(self, student_id: int, country_key: str, phase_key: str, category: str) -> Optional[Dict[str, Any]]: ...
    def save_phase_payload(self, student_id: int, country_key: str, phase_key: str, category: str, data: Dict[str, Any]) -> None: ...


class UniversitySource(Protocol):
    def fetch_universities(self, ids: Iterable) -> List[Dict[str, Any]]: ...


class ActivityLog(Protocol):
    def record(self, type: str, description: str, student_id: int, user_id: Optional[int], meta: Dict[str, Any]) -> None: ...


class NotificationSink(Protocol):
    def notify(self, target_user_id: int, payload: Dict[str, Any]) -> None: ...


def phase_payload_path(notes: Optional[Dict[str, Any]], phase_key: str, category: str) -> Optional[Dict[str, Any]]:
    """Read notes["phases"][phase_key][category]; tolerant of missing levels."""
    phases = (notes or {}).get("phases") or {}
    return (phases.get(phase_key) or {}).get(category)


def with_phase_payload(notes: Optional[Dict[str, Any]], phase_key: str, category: str, data: Dict[str, Any]) -> Dict[str, Any]:
    """Copy of ``notes`` with one namespaced payload replaced; other phases untouched."""
    out = dict(notes or {})
    phases = dict(out.get("phases") or {})
    bucket = dict(phases.get(phase_key) or {})
    bucket[category] = data
    phases[phase_key] = bucket
    out["phases"] = phases
    return out
