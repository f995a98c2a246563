import pytest

from services.memory_repositories import InMemoryMetadataRepository
from services.phase_metadata_store import PhaseMetadataStore
from services.repositories import PhaseStatus


def test_rows_created_lazily_with_defaults():
    store = PhaseMetadataStore(InMemoryMetadataRepository(), max_reopen_allowed=3)

    assert store.find(1, "UK", "INTERVIEW") is None
    rec = store.get_or_create(1, "U.K.", "INTERVIEW")

    assert rec.persisted
    assert rec.country_key == "uk"
    assert rec.status == PhaseStatus.PENDING
    assert rec.reopen_count == 0
    assert rec.max_reopen_allowed == 3
    assert rec.final_edit_allowed is True
    assert rec.edits_left == 4
    assert store.find(1, "United Kingdom", "INTERVIEW") == rec


def test_locked_forces_final_edit_off():
    store = PhaseMetadataStore(InMemoryMetadataRepository())
    rec = store.update(1, "UK", "INTERVIEW", status=PhaseStatus.LOCKED, final_edit_allowed=True)
    assert rec.is_locked
    assert rec.final_edit_allowed is False


def test_reopen_count_never_decreases():
    store = PhaseMetadataStore(InMemoryMetadataRepository())
    store.update(1, "UK", "INTERVIEW", reopen_count=2)
    with pytest.raises(ValueError):
        store.update(1, "UK", "INTERVIEW", reopen_count=1)


def test_unknown_status_rejected():
    store = PhaseMetadataStore(InMemoryMetadataRepository())
    with pytest.raises(ValueError):
        store.set_status(1, "UK", "INTERVIEW", "Archived")


def test_untracked_store_hands_out_defaults():
    store = PhaseMetadataStore(InMemoryMetadataRepository(supports_reopen_tracking=False))

    rec = store.get_or_create(1, "UK", "INTERVIEW", PhaseStatus.CURRENT)

    assert not store.tracking_enabled
    assert rec.persisted is False
    assert rec.status == PhaseStatus.CURRENT
    assert store.update(1, "UK", "INTERVIEW", status=PhaseStatus.COMPLETED) is None
    assert store.find(1, "UK", "INTERVIEW") is None
    assert store.list_for(1, "UK") == []
