# init_db.py
from app import create_app
from extensions import db
# every model must be imported, otherwise create_all skips its table
from models.student import Student  # noqa: F401
from models.application import ApplicationCountry, PhaseMetadata  # noqa: F401
from models.country_process import CountryApplicationProcess  # noqa: F401
from models.document import Document  # noqa: F401
from models.university import University  # noqa: F401
from models.activity import Activity, Notification  # noqa: F401

if __name__ == "__main__":
    app = create_app()
    with app.app_context():
        print("Dropping all tables...")
        db.drop_all()
        print("Creating all tables...")
        db.create_all()
        print("Done.")
