from services.countries import CountryCode
from services.memory_repositories import InMemoryCatalogSource
from services.phase_catalog import DEFAULT_PHASES, PhaseCatalogProvider, normalize_steps

from tests.utils import USA_STEPS


class ExplodingSource:
    def fetch_country_catalog(self, country):
        raise RuntimeError("db down")


def test_unknown_country_gets_default_catalog():
    catalog = PhaseCatalogProvider(InMemoryCatalogSource()).get_catalog("Narnia")

    assert catalog.is_default
    assert catalog.keys() == [k for k, _ in DEFAULT_PHASES]
    assert catalog.label_for("FINANCIAL_TB_TEST") == "Financial & TB Test"
    assert catalog.label_for("CAS_VISA") == "CAS Process"
    assert catalog.keys()[0] == "DOCUMENT_COLLECTION"
    assert catalog.keys()[-1] == "ENROLLMENT"


def test_country_catalog_from_source():
    provider = PhaseCatalogProvider(InMemoryCatalogSource({"usa": USA_STEPS}))
    catalog = provider.get_catalog("United States")

    assert not catalog.is_default
    assert catalog.country == CountryCode("usa")
    assert catalog.index_of("SEVIS_FEE") == 5
    assert catalog.label_for("SEVIS_FEE") == "SEVIS Fee Payment"
    assert catalog.label_for("OFFER_RECEIVED") == "Offer Received"
    assert "INTERVIEW" not in catalog


def test_source_failure_falls_back_to_default():
    catalog = PhaseCatalogProvider(ExplodingSource()).get_catalog("USA")
    assert catalog.is_default


def test_empty_steps_fall_back_to_default():
    catalog = PhaseCatalogProvider(InMemoryCatalogSource({"uk": []})).get_catalog("UK")
    assert catalog.is_default


def test_positions():
    catalog = PhaseCatalogProvider().get_catalog("UK")

    assert catalog.index_of("NOT_A_PHASE") == -1
    assert catalog.index_of(None) == -1
    assert [p.key for p in catalog.between("DOCUMENT_COLLECTION", "OFFER_RECEIVED")] == [
        "UNIVERSITY_SHORTLISTING", "APPLICATION_SUBMISSION",
    ]
    assert catalog.between("OFFER_RECEIVED", "DOCUMENT_COLLECTION") == []
    assert [p.key for p in catalog.after("VISA_APPLICATION")] == ["ENROLLMENT"]
    assert catalog.after("NOT_A_PHASE") == []


def test_normalize_steps_skips_blanks_and_duplicates():
    steps = normalize_steps(["A_STEP", "", {"key": "B_STEP", "label": "Bee"}, "A_STEP", {"label": "no key"}, 42])
    assert steps == [("A_STEP", "A STEP"), ("B_STEP", "Bee")]


def test_bare_step_labels_keep_case_or_use_universal_label():
    catalog = PhaseCatalogProvider(InMemoryCatalogSource({"usa": ["DOCUMENT_COLLECTION", "SEVIS_FEE", "CAS_VISA"]})).get_catalog("USA")
    assert catalog.label_for("DOCUMENT_COLLECTION") == "Document Collection"
    assert catalog.label_for("SEVIS_FEE") == "SEVIS FEE"
    assert catalog.label_for("CAS_VISA") == "CAS Process"
