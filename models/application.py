# models/application.py
from datetime import datetime
from extensions import db


class ApplicationCountry(db.Model):
    """
    One student's pursuit of one destination country.

    - country: what the counselor typed ("U.K.", "United Kingdom" ...), kept for display
    - country_key: canonical key from services.countries.canonicalize ("uk"), used for lookups
    - notes: namespaced phase payloads, {"phases": {PHASE_KEY: {category: {...}}}}
    """
    __tablename__ = "application_countries"

    id = db.Column(db.Integer, primary_key=True)
    student_id = db.Column(db.Integer, db.ForeignKey("students.id"), nullable=False, index=True)
    country = db.Column(db.String(80), nullable=False)
    country_key = db.Column(db.String(80), nullable=False, index=True)
    current_phase = db.Column(db.String(64), default="DOCUMENT_COLLECTION", nullable=False, index=True)
    notes = db.Column(db.JSON)
    total_applications = db.Column(db.Integer, default=0)
    last_updated = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    __table_args__ = (
        db.UniqueConstraint("student_id", "country_key", name="uq_application_country_student_key"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "student_id": self.student_id,
            "country": self.country,
            "country_key": self.country_key,
            "current_phase": self.current_phase,
            "notes": self.notes or {},
            "total_applications": self.total_applications or 0,
            "last_updated": self.last_updated.isoformat() if self.last_updated else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


class PhaseMetadata(db.Model):
    __tablename__ = "phase_metadata"

    id = db.Column(db.Integer, primary_key=True)
    student_id = db.Column(db.Integer, db.ForeignKey("students.id"), nullable=False, index=True)
    country_key = db.Column(db.String(80), nullable=False, index=True)
    phase_name = db.Column(db.String(64), nullable=False, index=True)
    status = db.Column(db.String(16), default="Pending", nullable=False, index=True)  # Pending | Current | Completed | Locked
    reopen_count = db.Column(db.Integer, default=0, nullable=False)
    max_reopen_allowed = db.Column(db.Integer, default=2, nullable=False)
    final_edit_allowed = db.Column(db.Boolean, default=True, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        db.UniqueConstraint("student_id", "country_key", "phase_name", name="unique_student_country_phase"),
    )

    def to_dict(self):
        return {
            "phase_name": self.phase_name,
            "status": self.status,
            "reopen_count": self.reopen_count,
            "max_reopen_allowed": self.max_reopen_allowed,
            "final_edit_allowed": self.final_edit_allowed,
        }
