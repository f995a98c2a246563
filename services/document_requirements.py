# services/document_requirements.py
"""
Which document types a phase needs before a student may enter it.

Two phases are universal: Document Collection (base documents) and
Enrollment. Everything else is looked up by (country, phase label); a
country/phase pair that is not in the table has no document gate.
"""
from __future__ import annotations

from typing import Dict, Iterable, List, Tuple

from services.countries import CountryCode
from services.phase_catalog import DOCUMENT_COLLECTION, ENROLLMENT

BASE_DOCUMENTS: Tuple[str, ...] = (
    "PASSPORT",
    "ACADEMIC_TRANSCRIPT",
    "RECOMMENDATION_LETTER",
    "STATEMENT_OF_PURPOSE",
    "CV_RESUME",
)

ENROLLMENT_DOCUMENTS: Tuple[str, ...] = ("ID_CARD", "ENROLLMENT_LETTER")

# One upload of these satisfies every country/phase that asks for them.
SHARED_DOCUMENTS = frozenset({
    "FINANCIAL_PROOF",
    "FINANCIAL_STATEMENT",
    "BANK_STATEMENT",
    "BANK_STATEMENTS",
    "PASSPORT",
    "ACADEMIC_TRANSCRIPT",
    "ENGLISH_TEST_SCORE",
    "MEDICAL_CERTIFICATE",
    "CV_RESUME",
    "RECOMMENDATION_LETTER",
    "STATEMENT_OF_PURPOSE",
})

# canonical country key -> phase label -> required document types
COUNTRY_DOCUMENT_REQUIREMENTS: Dict[str, Dict[str, List[str]]] = {
    "usa": {
        "Offer Received": ["I_20_FORM"],
        "SEVIS Fee Payment": ["SEVIS_FEE_RECEIPT"],
        "Visa Application (F-1) – DS-160 + Biometrics": [
            "DS_160_CONFIRMATION", "VISA_APPOINTMENT_CONFIRMATION", "BANK_STATEMENTS",
            "SPONSOR_AFFIDAVIT", "INCOME_PROOF",
        ],
    },
    "uk": {
        "Visa Process": ["TB_TEST_CERTIFICATE", "BANK_STATEMENTS", "TUITION_FEE_RECEIPT"],
    },
    "germany": {
        "Blocked Account + Health Insurance": ["BLOCKED_ACCOUNT_PROOF", "HEALTH_INSURANCE"],
        "Visa Application – National D Visa": ["APS_CERTIFICATE", "VISA_APPLICATION", "BIOMETRICS"],
    },
    "canada": {
        "Letter of Acceptance (LOA)": ["LOA"],
        "Initial Payment": ["TUITION_FEE_RECEIPT"],
        "Study Permit Application": ["GIC_CERTIFICATE", "BANK_STATEMENTS", "MEDICAL_EXAM", "BIOMETRICS"],
    },
    "australia": {
        "OSHC + Tuition Deposit": ["OSHC", "TUITION_FEE_RECEIPT"],
        "eCOE Issued": ["ECOE"],
        "Visa Application (Subclass 500)": ["FINANCIAL_PROOF", "VISA_APPLICATION", "BIOMETRICS"],
    },
    "ireland": {
        "Initial Tuition Payment": ["TUITION_FEE_RECEIPT"],
        "Visa Application": ["BANK_STATEMENT", "MEDICAL_INSURANCE"],
    },
    "france": {
        "Application Submission (Campus France / Direct)": ["CAMPUS_FRANCE_REGISTRATION", "INTERVIEW_ACKNOWLEDGEMENT"],
        "Visa Application – VFS France": ["TUITION_FEE_RECEIPT", "OFII_FORM", "BIOMETRICS"],
    },
    "italy": {
        "Pre-Enrollment on Universitaly Portal": ["UNIVERSITALY_RECEIPT"],
        "Visa Application – Type D (Long Stay)": ["FINANCIAL_PROOF", "ACCOMMODATION_PROOF", "VISA_APPLICATION"],
    },
    "greece": {
        "Initial Tuition Payment": ["TUITION_FEE_RECEIPT"],
        "Visa Application (National Visa – Type D)": ["FINANCIAL_PROOF", "ACCOMMODATION_PROOF", "VISA_APPLICATION"],
    },
    "denmark": {
        "Tuition Fee Payment": ["TUITION_FEE_RECEIPT"],
        "Residence Permit Application": ["FINANCIAL_PROOF", "BIOMETRICS"],
    },
    "finland": {
        "Tuition Fee Payment": ["TUITION_FEE_RECEIPT"],
        "Residence Permit Application": ["FINANCIAL_PROOF", "BIOMETRICS"],
    },
    "singapore": {
        "Student Pass Application (IPA)": ["IPA_LETTER"],
        "Student Pass Issuance": ["MEDICAL_REPORT"],
    },
    "uae": {
        "Student Visa Processing": ["STUDENT_VISA_APPROVAL", "MEDICAL_TEST", "EMIRATES_ID_APPLICATION"],
    },
    "malta": {
        "Initial Payment": ["TUITION_FEE_RECEIPT"],
        "Visa Application (National Visa – Type D)": ["BANK_STATEMENTS", "ACCOMMODATION_PROOF", "MEDICAL_INSURANCE"],
    },
}

DOCUMENT_DESCRIPTIONS = {
    "PASSPORT": "Valid passport with at least 6 months validity",
    "ACADEMIC_TRANSCRIPT": "Official academic transcripts from previous institutions",
    "RECOMMENDATION_LETTER": "Recommendation letters from professors or employers",
    "STATEMENT_OF_PURPOSE": "Statement of Purpose (SOP) explaining your academic and career goals",
    "CV_RESUME": "Updated CV or Resume highlighting your qualifications and experience",
    "ENGLISH_TEST_SCORE": "IELTS, TOEFL, or equivalent English proficiency test results",
    "FINANCIAL_STATEMENT": "Bank statements showing sufficient funds for tuition and living expenses",
    "MEDICAL_CERTIFICATE": "Medical examination certificate and TB test results",
    "ID_CARD": "Student ID card (front and back if applicable)",
    "ENROLLMENT_LETTER": "Official enrollment/registration letter from the institution",
    "OFFER_LETTER": "Official offer letter issued by the university for this application",
}

# status values that count as "uploaded" for gating
COUNTABLE_STATUSES = frozenset({"PENDING", "APPROVED"})


def _dedupe(items: Iterable[str]) -> Tuple[str, ...]:
    seen, out = set(), []
    for item in items:
        if item and item not in seen:
            seen.add(item)
            out.append(item)
    return tuple(out)


def required_documents(phase_key: str, phase_label: str, country) -> Tuple[str, ...]:
    """Ordered set of document types the phase requires; empty means no gate."""
    if phase_key == DOCUMENT_COLLECTION:
        return BASE_DOCUMENTS
    if phase_key == ENROLLMENT:
        return ENROLLMENT_DOCUMENTS

    code = CountryCode.parse(country)
    table = COUNTRY_DOCUMENT_REQUIREMENTS.get(code.key) or {}
    return _dedupe(table.get(phase_label) or [])


def is_shared(doc_type: str) -> bool:
    return doc_type in SHARED_DOCUMENTS


def describe_document(doc_type: str) -> str:
    return DOCUMENT_DESCRIPTIONS.get(doc_type, "Required document")


def countable_types(documents) -> set:
    """
    Types present among the student's PENDING/APPROVED documents.

    ``documents`` is the student's whole document set (any country),
    items are dicts or objects exposing ``type`` and ``status``.
    """
    present = set()
    for doc in documents or []:
        if isinstance(doc, dict):
            doc_type, status = doc.get("type"), doc.get("status")
        else:
            doc_type, status = getattr(doc, "type", None), getattr(doc, "status", None)
        if doc_type and str(status or "").upper() in COUNTABLE_STATUSES:
            present.add(doc_type)
    return present


def missing_documents(required: Iterable[str], present: set) -> List[str]:
    # documents carry no country: one shared upload counts for every country
    return [doc_type for doc_type in required if doc_type not in present]
