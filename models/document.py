# models/document.py
from datetime import datetime
from extensions import db


class Document(db.Model):
    """Uploaded student document. The phase engine only reads type + status."""
    __tablename__ = "documents"

    id = db.Column(db.Integer, primary_key=True)
    student_id = db.Column(db.Integer, db.ForeignKey("students.id"), nullable=False, index=True)
    type = db.Column(db.String(64), nullable=False, index=True)  # PASSPORT / ACADEMIC_TRANSCRIPT / ...
    status = db.Column(db.String(16), default="PENDING", nullable=False)  # PENDING | APPROVED | REJECTED
    file_url = db.Column(db.String(500))
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "student_id": self.student_id,
            "type": self.type,
            "status": self.status,
            "file_url": self.file_url,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
