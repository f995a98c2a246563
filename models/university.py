# models/university.py
from extensions import db


class University(db.Model):
    __tablename__ = "universities"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False)
    country = db.Column(db.String(80))
    city = db.Column(db.String(80))
    active = db.Column(db.Boolean, default=True, nullable=False)

    def to_dict(self):
        # shape stored inside phase payloads
        return {
            "id": self.id,
            "name": self.name,
            "country": self.country,
            "city": self.city,
        }
