# services/countries.py
"""
Country identity.

Counselors type destination countries as free text ("UK", "U.K.",
"United Kingdom", '["Dubai"]' ...). Everything that looks a country up
(catalog, document rules, profiles, phase metadata) goes through
``canonicalize()`` so one destination always maps to one key.
"""
from __future__ import annotations

import re
from dataclasses import dataclass

_SYNONYMS = {
    "UK": "uk", "U.K.": "uk", "U.K": "uk", "UNITED KINGDOM": "uk", "GREAT BRITAIN": "uk",
    "USA": "usa", "U.S.A.": "usa", "U.S.A": "usa", "U.S.": "usa", "US": "usa",
    "UNITED STATES": "usa", "UNITED STATES OF AMERICA": "usa",
    "UAE": "uae", "U.A.E.": "uae", "UNITED ARAB EMIRATES": "uae", "DUBAI": "uae",
}

_DISPLAY_NAMES = {
    "uk": "United Kingdom",
    "usa": "United States",
    "uae": "United Arab Emirates",
}

_STRIP_RE = re.compile(r"[\[\]\"']")
_SPACE_RE = re.compile(r"\s+")


def clean_country_name(raw) -> str:
    """Drop brackets/quotes left over from JSON-ish input and collapse whitespace."""
    if raw is None:
        return ""
    return _SPACE_RE.sub(" ", _STRIP_RE.sub("", str(raw))).strip()


def canonicalize(raw) -> str:
    """'U.K.' / 'United Kingdom' / ' uk ' -> 'uk'; unknown names -> lower-case."""
    cleaned = clean_country_name(raw)
    if not cleaned:
        return ""
    return _SYNONYMS.get(cleaned.upper(), cleaned.lower())


@dataclass(frozen=True)
class CountryCode:
    key: str

    @classmethod
    def parse(cls, raw) -> "CountryCode":
        if isinstance(raw, CountryCode):
            return raw
        key = canonicalize(raw)
        if not key:
            raise ValueError("country is required")
        return cls(key)

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES.get(self.key) or self.key.title()

    def __str__(self) -> str:
        return self.key
