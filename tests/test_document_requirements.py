from services.document_requirements import (
    BASE_DOCUMENTS,
    countable_types,
    is_shared,
    missing_documents,
    required_documents,
)


def test_universal_phases():
    assert required_documents("DOCUMENT_COLLECTION", "Document Collection", "Narnia") == BASE_DOCUMENTS
    assert required_documents("ENROLLMENT", "Enrollment", "USA") == ("ID_CARD", "ENROLLMENT_LETTER")


def test_country_phase_lookup_by_label():
    assert required_documents("SEVIS_FEE", "SEVIS Fee Payment", "U.S.A.") == ("SEVIS_FEE_RECEIPT",)
    assert required_documents("VISA_APPLICATION", "Visa Process", "United Kingdom") == (
        "TB_TEST_CERTIFICATE", "BANK_STATEMENTS", "TUITION_FEE_RECEIPT",
    )


def test_unlisted_pairs_have_no_gate():
    assert required_documents("INTERVIEW", "Interview", "UK") == ()
    assert required_documents("VISA_APPLICATION", "Visa Process", "Narnia") == ()


def test_only_pending_and_approved_count():
    docs = [
        {"type": "PASSPORT", "status": "APPROVED"},
        {"type": "CV_RESUME", "status": "pending"},
        {"type": "STATEMENT_OF_PURPOSE", "status": "REJECTED"},
    ]
    assert countable_types(docs) == {"PASSPORT", "CV_RESUME"}


def test_missing_keeps_requirement_order():
    assert missing_documents(BASE_DOCUMENTS, {"PASSPORT", "CV_RESUME"}) == [
        "ACADEMIC_TRANSCRIPT", "RECOMMENDATION_LETTER", "STATEMENT_OF_PURPOSE",
    ]


def test_shared_documents():
    assert is_shared("BANK_STATEMENTS")
    assert not is_shared("SEVIS_FEE_RECEIPT")
