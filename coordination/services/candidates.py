"""Candidate lookup: donors at other hospitals that could serve a need."""
from __future__ import annotations

from .compatibility import compatible_donor_types
from .scoring import DonorRecord, Need


def is_eligible(donor: DonorRecord, need: Need, blood_types) -> bool:
    return (
        donor.blood_type in blood_types
        and donor.is_active
        and donor.signature_verified
        and need.organ_type in donor.organs
        and donor.hospital_id != need.hospital_id
    )


def find_candidates(need: Need, store) -> list[DonorRecord]:
    """Return the unscored donors eligible for ``need``.

    An unknown blood type or an empty pool gives an empty list, never an
    error.
    """
    blood_types = compatible_donor_types(need.blood_type)
    if not blood_types:
        return []
    return list(store.eligible_donors(need, blood_types))
