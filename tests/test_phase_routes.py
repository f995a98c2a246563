import pytest
from flask_jwt_extended import create_access_token
from sqlalchemy.exc import SQLAlchemyError

from extensions import db
from models.activity import Activity, Notification
from models.application import ApplicationCountry, PhaseMetadata
from models.document import Document
from models.student import Student
from models.university import University

from tests.utils import BASE_DOCS, COUNSELOR_ID, MARKETING_ID


@pytest.fixture
def student(app):
    s = Student(first_name="Asha", last_name="Rao", counselor_id=COUNSELOR_ID, marketing_owner_id=MARKETING_ID)
    db.session.add(s)
    db.session.flush()
    db.session.add(ApplicationCountry(student_id=s.id, country="United Kingdom", country_key="uk",
                                      current_phase="DOCUMENT_COLLECTION", notes={}))
    db.session.add_all([
        University(name="University of Leeds", country="UK", city="Leeds"),
        University(name="University of Bath", country="UK", city="Bath"),
    ])
    db.session.commit()
    return s.id


def _headers(app, user_id=COUNSELOR_ID):
    token = create_access_token(identity=str(user_id))
    return {"Authorization": f"Bearer {token}"}


def _upload(student_id, *types):
    for t in types:
        db.session.add(Document(student_id=student_id, type=t, status="PENDING"))
    db.session.commit()


def test_phase_update_requires_documents(app, client, student):
    resp = client.put(f"/api/counselor/students/{student}/phase", headers=_headers(app),
                      json={"country": "UK", "currentPhase": "UNIVERSITY_SHORTLISTING"})

    assert resp.status_code == 400
    body = resp.get_json()
    assert body["code"] == "MISSING_DOCUMENTS"
    assert body["phase_label"] == "Document Collection"
    assert len(body["missing_document_types"]) == 5


def test_phase_update_applies_and_records(app, client, student):
    _upload(student, *BASE_DOCS)

    resp = client.put(f"/api/counselor/students/{student}/phase", headers=_headers(app), json={
        "country": "United Kingdom",
        "currentPhase": "UNIVERSITY_SHORTLISTING",
        "remarks": "first pass",
        "selectedUniversities": [1, 2],
    })

    assert resp.status_code == 200
    body = resp.get_json()
    assert body["status"] == "Applied"
    assert body["payloads"] == ["shortlist"]

    profile = ApplicationCountry.query.filter_by(student_id=student, country_key="uk").first()
    assert profile.current_phase == "UNIVERSITY_SHORTLISTING"
    assert len(profile.notes["phases"]["UNIVERSITY_SHORTLISTING"]["shortlist"]["universities"]) == 2
    dc = PhaseMetadata.query.filter_by(student_id=student, phase_name="DOCUMENT_COLLECTION").first()
    assert dc.status == "Completed"
    assert Activity.query.filter_by(student_id=student, type="PHASE_CHANGE").count() == 1
    assert {n.user_id for n in Notification.query.all()} == {COUNSELOR_ID, MARKETING_ID}


def test_reopen_and_metadata(app, client, student):
    _upload(student, *BASE_DOCS)
    headers = _headers(app)
    client.put(f"/api/counselor/students/{student}/phase", headers=headers,
               json={"country": "UK", "currentPhase": "UNIVERSITY_SHORTLISTING"})

    resp = client.post(f"/api/counselor/students/{student}/phase/reopen", headers=headers,
                       json={"country": "UK", "phaseName": "DOCUMENT_COLLECTION"})
    assert resp.status_code == 200
    assert resp.get_json()["reopened"] is True

    resp = client.get(f"/api/counselor/students/{student}/phase-metadata?country=UK", headers=headers)
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["tracking_enabled"] is True
    dc = body["metadata"][0]
    assert dc["phase_name"] == "DOCUMENT_COLLECTION"
    assert dc["reopen_count"] == 1
    assert dc["edits_left"] == 2


def test_reopen_of_future_phase_is_rejected(app, client, student):
    resp = client.post(f"/api/counselor/students/{student}/phase/reopen", headers=_headers(app),
                       json={"country": "UK", "phaseName": "ENROLLMENT"})
    assert resp.status_code == 400
    assert resp.get_json()["code"] == "NOT_A_PREVIOUS_PHASE"


def test_other_counselors_student_is_not_found(app, client, student):
    resp = client.get(f"/api/counselor/students/{student}/phase-metadata?country=UK", headers=_headers(app, 999))
    assert resp.status_code == 404


def test_token_required(client, student):
    resp = client.get(f"/api/counselor/students/{student}/phase-metadata?country=UK")
    assert resp.status_code == 401


def test_unknown_country_profile_is_404(app, client, student):
    resp = client.put(f"/api/counselor/students/{student}/phase", headers=_headers(app),
                      json={"country": "Germany", "currentPhase": "UNIVERSITY_SHORTLISTING"})
    assert resp.status_code == 404


def test_missing_country_is_400(app, client, student):
    resp = client.put(f"/api/counselor/students/{student}/phase", headers=_headers(app),
                      json={"currentPhase": "UNIVERSITY_SHORTLISTING"})
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "country is required"


def test_storage_fault_is_503(app, client, student, monkeypatch):
    def boom(*args, **kwargs):
        raise SQLAlchemyError("database is locked")

    monkeypatch.setattr("services.sql_repositories.SqlProfileRepository.update_current_phase", boom)
    _upload(student, *BASE_DOCS)

    resp = client.put(f"/api/counselor/students/{student}/phase", headers=_headers(app),
                      json={"country": "UK", "currentPhase": "UNIVERSITY_SHORTLISTING"})

    assert resp.status_code == 503
    assert resp.get_json() == {"error": "try again later"}


def test_requirements_and_catalog(app, client, student):
    _upload(student, "PASSPORT")
    headers = _headers(app)

    resp = client.get(f"/api/counselor/students/{student}/phase-requirements?country=UK&phase=VISA_APPLICATION",
                      headers=headers)
    assert resp.status_code == 200
    assert resp.get_json()["missing_document_types"] == ["TB_TEST_CERTIFICATE", "BANK_STATEMENTS", "TUITION_FEE_RECEIPT"]

    resp = client.get("/api/counselor/countries/U.K./phases", headers=headers)
    body = resp.get_json()
    assert body["country"] == "uk"
    assert body["is_default"] is True
    assert body["phases"][-1]["key"] == "ENROLLMENT"


def test_country_profiles(app, client, student):
    headers = _headers(app)

    resp = client.post(f"/api/counselor/students/{student}/countries", headers=headers, json={"country": "Canada"})
    assert resp.status_code == 201
    assert resp.get_json()["profile"]["current_phase"] == "DOCUMENT_COLLECTION"

    resp = client.post(f"/api/counselor/students/{student}/countries", headers=headers, json={"country": "uk"})
    assert resp.status_code == 200
    assert resp.get_json()["created"] is False

    resp = client.get(f"/api/counselor/students/{student}/countries", headers=headers)
    keys = [c["country_key"] for c in resp.get_json()["countries"]]
    assert keys == ["uk", "canada"]


def test_country_profiles_share_owner_check_and_storage_errors(app, client, student, monkeypatch):
    resp = client.get(f"/api/counselor/students/{student}/countries", headers=_headers(app, 999))
    assert resp.status_code == 404

    def boom(*args, **kwargs):
        raise SQLAlchemyError("database is locked")

    monkeypatch.setattr("services.sql_repositories.SqlProfileRepository.create_profile", boom)
    resp = client.post(f"/api/counselor/students/{student}/countries", headers=_headers(app), json={"country": "Canada"})
    assert resp.status_code == 503
    assert resp.get_json() == {"error": "try again later"}
