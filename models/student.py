# models/student.py
from datetime import datetime
from extensions import db


class Student(db.Model):
    __tablename__ = "students"

    id = db.Column(db.Integer, primary_key=True)
    first_name = db.Column(db.String(80), nullable=False)
    last_name = db.Column(db.String(80))
    email = db.Column(db.String(120), unique=True, nullable=True)
    phone = db.Column(db.String(20), nullable=True)

    # owning counselor / marketing person, ids come from the auth service
    counselor_id = db.Column(db.Integer, nullable=True, index=True)
    marketing_owner_id = db.Column(db.Integer, nullable=True, index=True)

    status = db.Column(db.String(16), default="ACTIVE", nullable=False)  # ACTIVE | COMPLETED
    notes = db.Column(db.JSON)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    countries = db.relationship("ApplicationCountry", backref="student", lazy="select")

    @property
    def full_name(self):
        return " ".join(p for p in (self.first_name, self.last_name) if p)

    def to_dict(self):
        return {
            "id": self.id,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "email": self.email,
            "phone": self.phone,
            "counselor_id": self.counselor_id,
            "marketing_owner_id": self.marketing_owner_id,
            "status": self.status,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
