from services.gating import GatingEngine
from services.memory_repositories import InMemoryCatalogSource, InMemoryDocumentSource
from services.phase_catalog import PhaseCatalogProvider

from tests.utils import BASE_DOCS, USA_STEPS

provider = PhaseCatalogProvider(InMemoryCatalogSource({"usa": USA_STEPS}))


def _engine(*types, student_id=1):
    docs = InMemoryDocumentSource()
    for t in types:
        docs.add(student_id, t)
    return GatingEngine(docs)


def test_exit_gate_reported_against_document_collection():
    engine = _engine("PASSPORT")
    decision = engine.authorize_forward_transition(
        1, "USA", "DOCUMENT_COLLECTION", "APPLICATION_SUBMISSION", catalog=provider.get_catalog("USA")
    )

    assert not decision.allowed
    assert decision.exit_gate
    assert decision.phase_key == "DOCUMENT_COLLECTION"
    assert decision.missing_document_types == (
        "ACADEMIC_TRANSCRIPT", "RECOMMENDATION_LETTER", "STATEMENT_OF_PURPOSE", "CV_RESUME",
    )
    assert decision.to_dict()["document_details"][0]["type"] == "ACADEMIC_TRANSCRIPT"


def test_exit_gate_only_applies_when_leaving_document_collection():
    engine = _engine()
    decision = engine.authorize_forward_transition(
        1, "USA", "UNIVERSITY_SHORTLISTING", "APPLICATION_SUBMISSION", catalog=provider.get_catalog("USA")
    )
    assert decision.allowed


def test_skipped_phases_checked_in_order():
    engine = _engine(*BASE_DOCS)
    decision = engine.authorize_forward_transition(
        1, "USA", "DOCUMENT_COLLECTION", "SEVIS_FEE", catalog=provider.get_catalog("USA")
    )

    assert not decision.allowed
    assert decision.phase_key == "OFFER_RECEIVED"
    assert decision.checked_phases == (
        "DOCUMENT_COLLECTION", "UNIVERSITY_SHORTLISTING", "APPLICATION_SUBMISSION", "OFFER_RECEIVED",
    )


def test_explicit_document_list_overrides_source():
    engine = _engine()
    decision = engine.authorize_forward_transition(
        1, "USA", "APPLICATION_SUBMISSION", "OFFER_RECEIVED",
        uploaded_documents=[{"type": "I_20_FORM", "status": "APPROVED"}],
        catalog=provider.get_catalog("USA"),
    )
    assert decision.allowed


def test_shared_document_satisfies_every_country():
    engine = _engine("BANK_STATEMENTS")
    uk = PhaseCatalogProvider().get_catalog("UK")
    usa = provider.get_catalog("USA")

    uk_visa = engine.authorize_forward_transition(1, "UK", "CAS_VISA", "VISA_APPLICATION", catalog=uk)
    usa_visa = engine.authorize_forward_transition(1, "USA", "SEVIS_FEE", "VISA_APPLICATION", catalog=usa)

    assert "BANK_STATEMENTS" not in uk_visa.missing_document_types
    assert "BANK_STATEMENTS" not in usa_visa.missing_document_types
    assert uk_visa.missing_document_types == ("TB_TEST_CERTIFICATE", "TUITION_FEE_RECEIPT")
