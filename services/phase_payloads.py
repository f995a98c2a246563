# services/phase_payloads.py
"""
Phase specific data carried by a phase update.

A request body may carry extra fields next to ``currentPhase``
(``selectedUniversities``, ``paymentAmount``, ``visaStatus`` ...). They are
parsed into the typed payloads below and validated before anything is
written. Each payload is stored in the country profile's notes under
``notes["phases"][<phase key>][<category>]``.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)

UNIVERSITY_SHORTLISTING = "UNIVERSITY_SHORTLISTING"
APPLICATION_SUBMISSION = "APPLICATION_SUBMISSION"
OFFER_PHASES = ("OFFER_RECEIVED", "OFFER_LETTER_AUSTRALIA")
INITIAL_PAYMENT = "INITIAL_PAYMENT"
ENROLLMENT = "ENROLLMENT"
FINANCIAL_TB_TEST = "FINANCIAL_TB_TEST"

PAYMENT_PHASES = (
    "INITIAL_PAYMENT",
    "DEPOSIT_I20",
    "SEVIS_FEE",
    "GIC_OPTIONAL",
    "OSHC_TUITION_DEPOSIT",
    "INITIAL_TUITION_PAYMENT",
    "TUITION_FEE_PAYMENT",
    "ACCEPT_OFFER_PAY_DEPOSIT",
    "BLOCKED_ACCOUNT_HEALTH",
)
PAYMENT_TYPES = ("INITIAL", "HALF", "COMPLETE")

# phase key -> (request field, allowed statuses)
DECISION_FIELDS = {
    "INTERVIEW": ("interviewStatus", ("APPROVED", "REFUSED", "STOPPED")),
    "CAS_VISA": ("casVisaStatus", ("APPROVED", "REFUSED", "STOPPED")),
    "VISA_APPLICATION": ("visaStatus", ("APPROVED", "REFUSED", "STOPPED")),
}
VISA_DECISION_FIELD = ("visaDecisionStatus", ("APPROVED", "REJECTED"))

DECISION_LABELS = {
    "APPROVED": "Approved",
    "REFUSED": "Refused",
    "STOPPED": "Stopped",
    "REJECTED": "Rejected",
}

FINANCIAL_OPTIONS = {
    "LOAN": "Loan",
    "SELF_AMOUNT": "Self amount",
    "OTHERS": "Others",
}


class InvalidPayload(ValueError):
    def __init__(self, reason, **details):
        super().__init__(reason)
        self.reason = reason
        self.details = details


def _now():
    return datetime.utcnow().isoformat()


def _university_view(u) -> Dict[str, Any]:
    return {"id": u.get("id"), "name": u.get("name"), "country": u.get("country"), "city": u.get("city")}


@dataclass(frozen=True)
class UniversitySelectionPayload:
    phase_key: str
    kind: str  # shortlist | submission | offers
    universities: Tuple[Dict[str, Any], ...]
    recorded_at: str = field(default_factory=_now)

    @property
    def category(self):
        return self.kind

    def to_dict(self):
        return {"universities": [dict(u) for u in self.universities], "recordedAt": self.recorded_at}

    def describe(self):
        return f"{len(self.universities)} universities ({self.kind})"


@dataclass(frozen=True)
class UniversityChoicePayload:
    phase_key: str
    kind: str  # payment | enrollment
    university: Dict[str, Any]
    is_fallback: bool = False
    recorded_at: str = field(default_factory=_now)

    @property
    def category(self):
        return f"{self.kind}_university"

    def to_dict(self):
        return {"university": dict(self.university), "isFallback": self.is_fallback, "selectedAt": self.recorded_at}

    def describe(self):
        return f"{self.kind} university {self.university.get('name')}"


@dataclass(frozen=True)
class PaymentPayload:
    phase_key: str
    amount: Optional[float]
    type: Optional[str]
    recorded_at: str = field(default_factory=_now)

    category = "payment"

    def to_dict(self):
        return {"amount": self.amount, "type": self.type, "updatedAt": self.recorded_at}

    def describe(self):
        return f"payment {self.type or ''} {self.amount if self.amount is not None else ''}".strip()


@dataclass(frozen=True)
class DecisionPayload:
    phase_key: str
    status: str
    remarks: Optional[str] = None
    recorded_at: str = field(default_factory=_now)

    category = "decision"

    @property
    def label(self):
        return DECISION_LABELS.get(self.status, self.status)

    def to_dict(self):
        return {"status": self.status, "label": self.label, "remarks": self.remarks, "updatedAt": self.recorded_at}

    def describe(self):
        return f"status updated to {self.label}"


@dataclass(frozen=True)
class FinancialOptionPayload:
    phase_key: str
    option: str
    recorded_at: str = field(default_factory=_now)

    category = "financial_option"

    @property
    def label(self):
        return FINANCIAL_OPTIONS[self.option]

    def to_dict(self):
        return {"option": self.option, "label": self.label, "selectedAt": self.recorded_at}

    def describe(self):
        return f"financial option {self.label}"


def is_payment_phase(phase_key: str) -> bool:
    key = (phase_key or "").upper()
    return key in PAYMENT_PHASES or "PAYMENT" in key or "FEE" in key or "DEPOSIT" in key


def decision_field_for(phase_key: str):
    if phase_key in DECISION_FIELDS:
        return DECISION_FIELDS[phase_key]
    if "VISA_DECISION" in (phase_key or ""):
        return VISA_DECISION_FIELD
    return None


class PayloadParser:
    """Turns the extra request fields for one phase into validated payloads."""

    def __init__(self, profile_repository, university_source=None):
        self.profile_repository = profile_repository
        self.university_source = university_source

    def _stored(self, student_id, country_key, phase_key, category) -> List[Dict[str, Any]]:
        data = self.profile_repository.get_phase_payload(student_id, country_key, phase_key, category) or {}
        return list(data.get("universities") or [])

    def _offers(self, student_id, country_key):
        for key in OFFER_PHASES:
            found = self._stored(student_id, country_key, key, "offers")
            if found:
                return found
        return []

    @staticmethod
    def _pick(available, ids) -> Tuple[List[Dict[str, Any]], List[Any]]:
        by_id = {str(u.get("id")): u for u in available}
        chosen, invalid = [], []
        for raw in ids:
            u = by_id.get(str(raw))
            if u is None:
                invalid.append(raw)
            else:
                chosen.append(_university_view(u))
        return chosen, invalid

    def parse(self, student_id, country_key, phase_key, extra: Optional[Dict[str, Any]], remarks=None) -> list:
        """Return the payloads present in ``extra``; raise InvalidPayload on bad data."""
        extra = extra or {}
        payloads: list = []

        selected = extra.get("selectedUniversities")
        if selected is not None and phase_key in (UNIVERSITY_SHORTLISTING, APPLICATION_SUBMISSION) + OFFER_PHASES:
            if not isinstance(selected, list):
                raise InvalidPayload("selectedUniversities must be a list")
            payloads.append(self._selection(student_id, country_key, phase_key, selected))

        choice = extra.get("selectedUniversity")
        if choice not in (None, "") and phase_key in (INITIAL_PAYMENT, ENROLLMENT):
            payloads.append(self._choice(student_id, country_key, phase_key, choice))

        if is_payment_phase(phase_key) and (extra.get("paymentAmount") not in (None, "") or extra.get("paymentType")):
            payloads.append(self._payment(phase_key, extra.get("paymentAmount"), extra.get("paymentType")))

        decision = decision_field_for(phase_key)
        if decision is not None:
            field_name, allowed = decision
            status = extra.get(field_name)
            if status:
                if status not in allowed:
                    raise InvalidPayload(f"Invalid {field_name}. Must be one of {', '.join(allowed)}.")
                payloads.append(DecisionPayload(phase_key, status, remarks))

        option = extra.get("financialOption")
        if option and phase_key == FINANCIAL_TB_TEST:
            if option not in FINANCIAL_OPTIONS:
                raise InvalidPayload(f"Invalid financialOption. Must be one of {', '.join(FINANCIAL_OPTIONS)}.")
            payloads.append(FinancialOptionPayload(phase_key, option))

        return payloads

    def _selection(self, student_id, country_key, phase_key, selected) -> UniversitySelectionPayload:
        if phase_key == UNIVERSITY_SHORTLISTING:
            if self.university_source is None:
                raise InvalidPayload("University lookup is not available")
            found = self.university_source.fetch_universities(selected)
            if len(found) != len(selected):
                raise InvalidPayload("Some selected universities are invalid or inactive",
                                     invalidCount=len(selected) - len(found))
            return UniversitySelectionPayload(phase_key, "shortlist", tuple(_university_view(u) for u in found))

        shortlist = self._stored(student_id, country_key, UNIVERSITY_SHORTLISTING, "shortlist")
        if phase_key == APPLICATION_SUBMISSION:
            if not shortlist:
                raise InvalidPayload("No shortlisted universities found. Shortlist universities first.")
            chosen, invalid = self._pick(shortlist, selected)
            if invalid:
                raise InvalidPayload("Some selected universities are not in the shortlist", invalidIds=invalid)
            return UniversitySelectionPayload(phase_key, "submission", tuple(chosen))

        available = self._stored(student_id, country_key, APPLICATION_SUBMISSION, "submission") or shortlist
        if not available:
            raise InvalidPayload("No universities found from Application Submission. Submit applications first.")
        chosen, invalid = self._pick(available, selected)
        if invalid:
            raise InvalidPayload("Some selected universities are not in the submitted applications",
                                 invalidIds=invalid)
        return UniversitySelectionPayload(phase_key, "offers", tuple(chosen))

    def _choice(self, student_id, country_key, phase_key, choice) -> UniversityChoicePayload:
        kind = "payment" if phase_key == INITIAL_PAYMENT else "enrollment"
        available, is_fallback = self._offers(student_id, country_key), False
        if not available:
            available = self._stored(student_id, country_key, UNIVERSITY_SHORTLISTING, "shortlist")
            is_fallback = True
        if not available:
            raise InvalidPayload("No universities found. Shortlist universities first.")
        chosen, invalid = self._pick(available, [choice])
        if invalid:
            raise InvalidPayload("Selected university is not in the available universities list")
        return UniversityChoicePayload(phase_key, kind, chosen[0], is_fallback)

    @staticmethod
    def _payment(phase_key, amount, payment_type) -> PaymentPayload:
        value = None
        if amount not in (None, ""):
            try:
                value = float(amount)
            except (TypeError, ValueError):
                raise InvalidPayload("paymentAmount must be a number")
            if not math.isfinite(value):
                raise InvalidPayload("paymentAmount must be a number")
            if value < 0:
                raise InvalidPayload("paymentAmount cannot be negative")
        if payment_type and payment_type not in PAYMENT_TYPES:
            raise InvalidPayload(f"Invalid paymentType. Must be one of {', '.join(PAYMENT_TYPES)}.")
        return PaymentPayload(phase_key, value, payment_type or None)
