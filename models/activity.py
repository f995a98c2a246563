# models/activity.py
from datetime import datetime
from extensions import db


class Activity(db.Model):
    """Audit trail of phase changes / reopens, one row per applied operation."""
    __tablename__ = "activities"

    id = db.Column(db.Integer, primary_key=True)
    type = db.Column(db.String(32), nullable=False, index=True)  # PHASE_CHANGE | PHASE_REOPEN | PHASE_STATUS_UPDATE
    description = db.Column(db.Text)
    student_id = db.Column(db.Integer, db.ForeignKey("students.id"), nullable=False, index=True)
    user_id = db.Column(db.Integer, nullable=True)
    meta = db.Column(db.JSON)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "type": self.type,
            "description": self.description,
            "student_id": self.student_id,
            "user_id": self.user_id,
            "meta": self.meta or {},
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


class Notification(db.Model):
    __tablename__ = "notifications"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, nullable=False, index=True)
    type = db.Column(db.String(40), default="application_progress")
    title = db.Column(db.String(200))
    message = db.Column(db.Text)
    priority = db.Column(db.String(16), default="medium")
    lead_id = db.Column(db.Integer, nullable=True)
    is_read = db.Column(db.Boolean, default=False, nullable=False)
    meta = db.Column(db.JSON)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "type": self.type,
            "title": self.title,
            "message": self.message,
            "priority": self.priority,
            "lead_id": self.lead_id,
            "is_read": self.is_read,
            "meta": self.meta or {},
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
