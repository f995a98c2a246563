# services/gating.py
"""
Document gating for forward phase transitions.

- exit gate: Document Collection cannot be left until its base documents exist
- entry gate: the target phase's (country specific) requirements
- phases skipped by a multi-step jump are gated too, in catalog order
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from services.countries import CountryCode
from services.document_requirements import (
    COUNTABLE_STATUSES,
    countable_types,
    describe_document,
    missing_documents,
    required_documents,
)
from services.phase_catalog import DOCUMENT_COLLECTION, humanize_phase_key


@dataclass(frozen=True)
class GateDecision:
    allowed: bool
    phase_key: Optional[str] = None
    phase_label: Optional[str] = None
    country: Optional[str] = None
    missing_document_types: Tuple[str, ...] = ()
    exit_gate: bool = False
    checked_phases: Tuple[str, ...] = field(default=())

    @property
    def document_details(self) -> List[dict]:
        return [{"type": t, "description": describe_document(t)} for t in self.missing_document_types]

    def to_dict(self):
        return {
            "allowed": self.allowed,
            "phase_key": self.phase_key,
            "phase_label": self.phase_label,
            "country": self.country,
            "missing_document_types": list(self.missing_document_types),
            "document_details": self.document_details,
            "exit_gate": self.exit_gate,
        }


class GatingEngine:
    def __init__(self, document_source=None):
        self.document_source = document_source

    def load_documents(self, student_id) -> list:
        if self.document_source is None:
            return []
        return self.document_source.fetch_documents(student_id, sorted(COUNTABLE_STATUSES))

    def authorize_forward_transition(self, student_id, country, from_phase, to_phase,
                                     uploaded_documents=None, catalog=None) -> GateDecision:
        """Allow, or Deny with the missing document types of the first failing phase."""
        code = CountryCode.parse(country)
        if uploaded_documents is None:
            uploaded_documents = self.load_documents(student_id)
        present = countable_types(uploaded_documents)

        def label(key):
            return catalog.label_for(key) if catalog is not None else humanize_phase_key(key)

        checked = []

        if from_phase == DOCUMENT_COLLECTION and to_phase != DOCUMENT_COLLECTION:
            checked.append(DOCUMENT_COLLECTION)
            missing = missing_documents(required_documents(DOCUMENT_COLLECTION, label(DOCUMENT_COLLECTION), code), present)
            if missing:
                return GateDecision(
                    allowed=False,
                    phase_key=DOCUMENT_COLLECTION,
                    phase_label=label(DOCUMENT_COLLECTION),
                    country=code.key,
                    missing_document_types=tuple(missing),
                    exit_gate=True,
                    checked_phases=tuple(checked),
                )

        targets = [p.key for p in catalog.between(from_phase, to_phase)] if catalog is not None else []
        targets.append(to_phase)

        for key in targets:
            checked.append(key)
            missing = missing_documents(required_documents(key, label(key), code), present)
            if missing:
                return GateDecision(
                    allowed=False,
                    phase_key=key,
                    phase_label=label(key),
                    country=code.key,
                    missing_document_types=tuple(missing),
                    checked_phases=tuple(checked),
                )

        return GateDecision(
            allowed=True,
            phase_key=to_phase,
            phase_label=label(to_phase),
            country=code.key,
            checked_phases=tuple(checked),
        )
