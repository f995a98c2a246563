from services.countries import CountryCode
from services.memory_repositories import (
    InMemoryActivityLog,
    InMemoryCatalogSource,
    InMemoryDocumentSource,
    InMemoryMetadataRepository,
    InMemoryProfileRepository,
    InMemoryUniversitySource,
    RecordingNotificationSink,
)
from services.phase_catalog import DOCUMENT_COLLECTION
from services.phase_engine import PhaseTransitionService

BASE_DOCS = ("PASSPORT", "ACADEMIC_TRANSCRIPT", "RECOMMENDATION_LETTER", "STATEMENT_OF_PURPOSE", "CV_RESUME")

USA_STEPS = [
    "DOCUMENT_COLLECTION",
    "UNIVERSITY_SHORTLISTING",
    "APPLICATION_SUBMISSION",
    "OFFER_RECEIVED",
    {"key": "DEPOSIT_I20", "label": "Deposit & I-20"},
    {"key": "SEVIS_FEE", "label": "SEVIS Fee Payment"},
    {"key": "VISA_APPLICATION", "label": "Visa Application (F-1) – DS-160 + Biometrics"},
    {"key": "VISA_DECISION", "label": "Visa Decision"},
    "ENROLLMENT",
]

UNIVERSITIES = [
    {"id": 1, "name": "Arizona State University", "country": "USA", "city": "Tempe"},
    {"id": 2, "name": "Purdue University", "country": "USA", "city": "West Lafayette"},
    {"id": 3, "name": "Rutgers University", "country": "USA", "city": "New Brunswick"},
    {"id": 4, "name": "Closed College", "country": "USA", "city": "Nowhere", "active": False},
]

STUDENT_ID = 1
COUNSELOR_ID = 7
MARKETING_ID = 9


class Env:
    """In-memory collaborators plus the service wired on top of them."""

    def __init__(self, catalogs=None, tracking=True, universities=None):
        self.catalog_source = InMemoryCatalogSource(catalogs)
        self.documents = InMemoryDocumentSource()
        self.metadata = InMemoryMetadataRepository(supports_reopen_tracking=tracking)
        self.profiles = InMemoryProfileRepository()
        self.universities = InMemoryUniversitySource(UNIVERSITIES if universities is None else universities)
        self.activity = InMemoryActivityLog()
        self.notifications = RecordingNotificationSink()
        self.invalidated = []
        self.service = PhaseTransitionService(
            profile_repository=self.profiles,
            metadata_repository=self.metadata,
            catalog_source=self.catalog_source,
            document_source=self.documents,
            university_source=self.universities,
            activity_log=self.activity,
            notification_sink=self.notifications,
            cache_invalidator=self.invalidated.extend,
        )

    def add_student(self, student_id=STUDENT_ID, country=None, phase=DOCUMENT_COLLECTION):
        self.profiles.add_student(student_id, "Asha Rao", counselor_id=COUNSELOR_ID, marketing_owner_id=MARKETING_ID)
        if country:
            code = CountryCode.parse(country)
            self.profiles.create_profile(student_id, code.display_name, code.key, phase)

    def upload(self, *types, student_id=STUDENT_ID, status="PENDING"):
        for t in types:
            self.documents.add(student_id, t, status)

    def meta(self, country, phase, student_id=STUDENT_ID):
        return self.metadata.find(student_id, CountryCode.parse(country).key, phase)

    def current_phase(self, country, student_id=STUDENT_ID):
        return self.profiles.get_profile(student_id, CountryCode.parse(country).key).current_phase
