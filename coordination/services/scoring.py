"""
Composite scoring of a donor against a recipient's need.

A candidate's score combines four sub-scores, each in ``[0, 100]``:

* compatibility -- 100 for an identical blood type, 80 for a compatible
  one, 0 otherwise (incompatible donors are filtered out before scoring);
* urgency bonus -- a fixed value per urgency tier of the need;
* proximity -- supplied by a :class:`ProximityEstimator`;
* freshness -- a step function of how recently the donor registered.

The composite is ``0.4*compatibility + 0.3*urgency + 0.2*proximity +
0.1*freshness`` rounded half-up to two decimals.
"""
from __future__ import annotations

import abc
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from types import MappingProxyType
from typing import Iterable, Optional

from rest_framework.exceptions import ValidationError

from .compatibility import BLOOD_TYPES, URGENCY_LEVELS, compatible_donor_types

WEIGHTS = MappingProxyType({
    'compatibility': Decimal('0.4'),
    'urgency': Decimal('0.3'),
    'proximity': Decimal('0.2'),
    'freshness': Decimal('0.1'),
})

URGENCY_BONUS = MappingProxyType({
    'Critical': 100,
    'High': 75,
    'Medium': 50,
    'Low': 25,
})

# (max age in days, score); anything older scores FRESHNESS_FLOOR
FRESHNESS_STEPS = ((7, 100), (30, 80), (90, 60), (180, 40))
FRESHNESS_FLOOR = 20

_TWO_PLACES = Decimal('0.01')


@dataclass(frozen=True)
class Need:
    """A recipient's outstanding requirement for an organ."""
    organ_type: str
    blood_type: str
    urgency_level: str
    hospital_id: str
    patient_ref: str

    def validate(self) -> None:
        errors: dict[str, list[str]] = {}
        if not (self.organ_type or '').strip():
            errors['organType'] = ['organ type is required']
        if not self.blood_type:
            errors['bloodType'] = ['blood type is required']
        elif self.blood_type not in BLOOD_TYPES:
            errors['bloodType'] = [f'unknown blood type {self.blood_type!r}']
        if not self.urgency_level:
            errors['urgencyLevel'] = ['urgency level is required']
        elif self.urgency_level not in URGENCY_LEVELS:
            errors['urgencyLevel'] = [f'unknown urgency level {self.urgency_level!r}']
        if not self.hospital_id:
            errors['hospitalId'] = ['requesting hospital is required']
        if not self.patient_ref:
            errors['patientId'] = ['recipient is required']
        if errors:
            raise ValidationError(errors)


@dataclass(frozen=True)
class DonorRecord:
    donor_id: str
    hospital_id: str
    blood_type: str
    organs: frozenset = field(default_factory=frozenset)
    is_active: bool = True
    signature_verified: bool = False
    registered_at: Optional[datetime] = None


@dataclass(frozen=True)
class MatchCandidate:
    """One donor scored against one need."""
    donor_id: str
    hospital_id: str
    blood_type: str
    organs: tuple
    registered_at: datetime
    score: Decimal
    compatibility: Decimal
    urgency_bonus: Decimal
    proximity: Decimal
    freshness: Decimal

    def as_dict(self) -> dict:
        return {
            'donorId': self.donor_id,
            'hospitalId': self.hospital_id,
            'bloodType': self.blood_type,
            'organs': list(self.organs),
            'registeredAt': self.registered_at.isoformat() if self.registered_at else None,
            'score': float(self.score),
            'compatibility': float(self.compatibility),
            'urgencyBonus': float(self.urgency_bonus),
            'proximity': float(self.proximity),
            'freshness': float(self.freshness),
        }


class ProximityEstimator(abc.ABC):
    """Maps a pair of hospitals to a closeness score in ``[0, 100]``.

    Implementations must be deterministic; higher means closer.
    """

    @abc.abstractmethod
    def estimate(self, origin_hospital_id: str, donor_hospital_id: str) -> float:
        raise NotImplementedError


class HashProximityEstimator(ProximityEstimator):
    """Placeholder proximity used while hospitals carry no coordinates.

    Folds a 32-bit rolling hash of the two identifiers into ``[60, 100)``;
    the same pair always yields the same value and a hospital paired
    with itself scores 100.  Replace with a geodistance-based estimator
    once hospital locations are available.
    """

    def estimate(self, origin_hospital_id: str, donor_hospital_id: str) -> float:
        if origin_hospital_id == donor_hospital_id:
            return 100.0
        h = 0
        for ch in f"{origin_hospital_id}{donor_hospital_id}":
            h = (h * 31 + ord(ch)) & 0xFFFFFFFF
        if h >= 0x80000000:
            h -= 0x100000000
        return float(abs(h) % 40 + 60)


def compatibility_score(recipient_blood_type: str, donor_blood_type: str) -> int:
    if recipient_blood_type == donor_blood_type:
        return 100
    if donor_blood_type in compatible_donor_types(recipient_blood_type):
        return 80
    return 0


def urgency_bonus(urgency_level: str) -> int:
    return URGENCY_BONUS.get(urgency_level, 0)


def freshness_score(registered_at: Optional[datetime], now: datetime) -> int:
    if registered_at is None:
        return FRESHNESS_FLOOR
    days = max(0, (now - registered_at).days)
    for max_days, value in FRESHNESS_STEPS:
        if days <= max_days:
            return value
    return FRESHNESS_FLOOR


def _bounded(value) -> Decimal:
    d = Decimal(str(value))
    return min(Decimal(100), max(Decimal(0), d))


class MatchScorer:
    """Scores (need, donor) pairs with a pluggable proximity estimator."""

    def __init__(self, proximity: Optional[ProximityEstimator] = None, weights=WEIGHTS):
        self.proximity = proximity or HashProximityEstimator()
        self.weights = weights

    def score(self, need: Need, donor: DonorRecord, now: datetime) -> MatchCandidate:
        compat = _bounded(compatibility_score(need.blood_type, donor.blood_type))
        urgency = _bounded(urgency_bonus(need.urgency_level))
        proximity = _bounded(self.proximity.estimate(need.hospital_id, donor.hospital_id))
        freshness = _bounded(freshness_score(donor.registered_at, now))
        composite = (
            compat * self.weights['compatibility']
            + urgency * self.weights['urgency']
            + proximity * self.weights['proximity']
            + freshness * self.weights['freshness']
        )
        composite = _bounded(composite).quantize(_TWO_PLACES, rounding=ROUND_HALF_UP)
        return MatchCandidate(
            donor_id=donor.donor_id,
            hospital_id=donor.hospital_id,
            blood_type=donor.blood_type,
            organs=tuple(sorted(donor.organs)),
            registered_at=donor.registered_at,
            score=composite,
            compatibility=compat,
            urgency_bonus=urgency,
            proximity=proximity,
            freshness=freshness,
        )

    def score_all(self, need: Need, donors: Iterable[DonorRecord], now: datetime) -> list[MatchCandidate]:
        return rank(self.score(need, d, now) for d in donors)


def rank(candidates: Iterable[MatchCandidate]) -> list[MatchCandidate]:
    """Order candidates best first.

    Equal composites fall back to the most recently registered donor and
    then to the donor id, so rankings never depend on query order.
    """
    def key(c: MatchCandidate):
        ts = c.registered_at.timestamp() if c.registered_at else float('-inf')
        return (-c.score, -ts, c.donor_id)
    return sorted(candidates, key=key)
