# services/phase_catalog.py
"""
Phase catalog provider.

Each destination country has an ordered list of phases. Country specific
catalogs come from the catalog source (``country_application_processes``);
when a country has none, the ten universal phases below are used.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from services.countries import CountryCode

logger = logging.getLogger(__name__)

DOCUMENT_COLLECTION = "DOCUMENT_COLLECTION"
ENROLLMENT = "ENROLLMENT"

DEFAULT_PHASES: Tuple[Tuple[str, str], ...] = (
    ("DOCUMENT_COLLECTION", "Document Collection"),
    ("UNIVERSITY_SHORTLISTING", "University Shortlisting"),
    ("APPLICATION_SUBMISSION", "Application Submission"),
    ("OFFER_RECEIVED", "Offer Received"),
    ("INITIAL_PAYMENT", "Initial Payment"),
    ("INTERVIEW", "Interview"),
    ("FINANCIAL_TB_TEST", "Financial & TB Test"),
    ("CAS_VISA", "CAS Process"),
    ("VISA_APPLICATION", "Visa Process"),
    ("ENROLLMENT", "Enrollment"),
)


_DEFAULT_LABELS = dict(DEFAULT_PHASES)


def humanize_phase_key(key: str) -> str:
    """Universal label when the key has one, else the key with spaces ("SEVIS_FEE" -> "SEVIS FEE")."""
    return _DEFAULT_LABELS.get(key) or (key or "").replace("_", " ")


@dataclass(frozen=True)
class Phase:
    key: str
    label: str
    order: int

    def to_dict(self):
        return {"key": self.key, "label": self.label, "order": self.order}


class PhaseCatalog:
    """Ordered, immutable list of phases for one country."""

    def __init__(self, country: CountryCode, phases: Iterable[Phase], is_default: bool = False):
        self.country = country
        self.phases: Tuple[Phase, ...] = tuple(phases)
        self.is_default = is_default
        self._index = {p.key: p.order for p in self.phases}

    def __len__(self):
        return len(self.phases)

    def __iter__(self):
        return iter(self.phases)

    def __contains__(self, key) -> bool:
        return key in self._index

    def index_of(self, key: Optional[str]) -> int:
        """Position of ``key`` in the catalog, -1 when unlisted."""
        if key is None:
            return -1
        return self._index.get(key, -1)

    def get(self, key: str) -> Optional[Phase]:
        idx = self.index_of(key)
        return self.phases[idx] if idx >= 0 else None

    def label_for(self, key: str) -> str:
        phase = self.get(key)
        return phase.label if phase else humanize_phase_key(key)

    def keys(self) -> List[str]:
        return [p.key for p in self.phases]

    def after(self, key: str) -> List[Phase]:
        """Phases strictly after ``key``; empty when ``key`` is unlisted."""
        idx = self.index_of(key)
        if idx < 0:
            return []
        return list(self.phases[idx + 1:])

    def between(self, from_key: str, to_key: str) -> List[Phase]:
        """Phases strictly between two listed phases (forward direction)."""
        lo, hi = self.index_of(from_key), self.index_of(to_key)
        if lo < 0 or hi < 0 or hi <= lo:
            return []
        return list(self.phases[lo + 1:hi])

    def to_dict(self):
        return {
            "country": self.country.key,
            "is_default": self.is_default,
            "phases": [p.to_dict() for p in self.phases],
        }


def normalize_steps(raw_steps) -> List[Tuple[str, str]]:
    """
    Accepts the shapes found in stored configuration:
      - ["DOCUMENT_COLLECTION", "SEVIS_FEE", ...]
      - [{"key": "SEVIS_FEE", "label": "SEVIS Fee Payment"}, ...]
    Returns [(key, label), ...] without blanks or duplicate keys.
    """
    out: List[Tuple[str, str]] = []
    seen = set()
    for step in raw_steps or []:
        if isinstance(step, str):
            key, label = step.strip(), None
        elif isinstance(step, dict):
            key = str(step.get("key") or "").strip()
            label = step.get("label")
        else:
            continue
        if not key or key in seen:
            continue
        seen.add(key)
        out.append((key, (str(label).strip() if label else "") or humanize_phase_key(key)))
    return out


def default_catalog(country: CountryCode) -> PhaseCatalog:
    return PhaseCatalog(
        country,
        [Phase(key, label, i) for i, (key, label) in enumerate(DEFAULT_PHASES)],
        is_default=True,
    )


class PhaseCatalogProvider:
    """get_catalog(country) -> PhaseCatalog, never raises for unknown countries."""

    def __init__(self, catalog_source=None):
        self.catalog_source = catalog_source

    def get_catalog(self, country) -> PhaseCatalog:
        code = CountryCode.parse(country)
        raw = None
        if self.catalog_source is not None:
            try:
                raw = self.catalog_source.fetch_country_catalog(code)
            except Exception as e:
                logger.warning(f"[phase] catalog lookup failed for {code}, using default phases: {e}")
                raw = None

        steps = normalize_steps(raw)
        if not steps:
            return default_catalog(code)
        return PhaseCatalog(code, [Phase(key, label, i) for i, (key, label) in enumerate(steps)])
