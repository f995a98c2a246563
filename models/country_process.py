# models/country_process.py
from datetime import datetime
from extensions import db


class CountryApplicationProcess(db.Model):
    """
    Per-country phase catalog configuration.

    steps: JSON list, each item is either a bare phase key ("SEVIS_FEE")
    or a record {"key": "SEVIS_FEE", "label": "SEVIS Fee Payment"}.
    """
    __tablename__ = "country_application_processes"

    id = db.Column(db.Integer, primary_key=True)
    country = db.Column(db.String(80), nullable=False)
    country_key = db.Column(db.String(80), nullable=False, index=True)
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    steps = db.Column(db.JSON)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "country": self.country,
            "country_key": self.country_key,
            "is_active": self.is_active,
            "steps": self.steps or [],
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
