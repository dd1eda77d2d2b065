"""
ABO/Rh compatibility rules for solid organ matching.

The table is indexed by the *recipient's* blood type and lists every
donor blood type that recipient may receive from.  It is built once at
import time and exposed read-only.
"""
from types import MappingProxyType

BLOOD_TYPES = ('O-', 'O+', 'A-', 'A+', 'B-', 'B+', 'AB-', 'AB+')
ORGAN_TYPES = ('Kidney', 'Liver', 'Heart', 'Lung', 'Pancreas', 'Intestine', 'Cornea')
URGENCY_LEVELS = ('Critical', 'High', 'Medium', 'Low')

DONORS_BY_RECIPIENT = MappingProxyType({
    'O-': frozenset({'O-'}),
    'O+': frozenset({'O-', 'O+'}),
    'A-': frozenset({'O-', 'A-'}),
    'A+': frozenset({'O-', 'O+', 'A-', 'A+'}),
    'B-': frozenset({'O-', 'B-'}),
    'B+': frozenset({'O-', 'O+', 'B-', 'B+'}),
    'AB-': frozenset({'O-', 'A-', 'B-', 'AB-'}),
    'AB+': frozenset(BLOOD_TYPES),
})


def compatible_donor_types(recipient_blood_type: str) -> frozenset:
    """Return the donor blood types a recipient can receive from.

    Unknown blood types yield an empty set rather than an error so the
    caller can treat them as "no possible donors".
    """
    return DONORS_BY_RECIPIENT.get((recipient_blood_type or '').strip().upper(), frozenset())


def is_compatible(recipient_blood_type: str, donor_blood_type: str) -> bool:
    return donor_blood_type in compatible_donor_types(recipient_blood_type)
