from datetime import datetime, timedelta, timezone as dt_timezone
from decimal import Decimal

import pytest
from rest_framework.exceptions import ValidationError

from coordination.services.compatibility import BLOOD_TYPES, compatible_donor_types, is_compatible
from coordination.services.scoring import (
    FRESHNESS_FLOOR,
    DonorRecord,
    HashProximityEstimator,
    MatchScorer,
    Need,
    ProximityEstimator,
    freshness_score,
    rank,
)

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=dt_timezone.utc)

EXPECTED_DONORS = {
    'O-': {'O-'},
    'O+': {'O-', 'O+'},
    'A-': {'O-', 'A-'},
    'A+': {'O-', 'O+', 'A-', 'A+'},
    'B-': {'O-', 'B-'},
    'B+': {'O-', 'O+', 'B-', 'B+'},
    'AB-': {'O-', 'A-', 'B-', 'AB-'},
    'AB+': set(BLOOD_TYPES),
}


def need(**kw):
    data = dict(organ_type='Kidney', blood_type='O+', urgency_level='Critical',
                hospital_id='H1', patient_ref='P1')
    data.update(kw)
    return Need(**data)


def donor(donor_id='D1', hospital_id='H2', blood_type='O+', days_old=1, **kw):
    return DonorRecord(
        donor_id=donor_id,
        hospital_id=hospital_id,
        blood_type=blood_type,
        organs=frozenset(kw.pop('organs', {'Kidney'})),
        is_active=kw.pop('is_active', True),
        signature_verified=kw.pop('signature_verified', True),
        registered_at=NOW - timedelta(days=days_old),
    )


@pytest.mark.parametrize('recipient', BLOOD_TYPES)
def test_compatibility_table_is_indexed_by_recipient(recipient):
    assert set(compatible_donor_types(recipient)) == EXPECTED_DONORS[recipient]


def test_universal_donor_and_recipient():
    assert all(is_compatible(r, 'O-') for r in BLOOD_TYPES)
    assert compatible_donor_types('AB+') == frozenset(BLOOD_TYPES)
    assert not is_compatible('O+', 'AB+')


def test_unknown_blood_type_has_no_donors():
    assert compatible_donor_types('Z+') == frozenset()
    assert compatible_donor_types('') == frozenset()
    assert compatible_donor_types(' ab+ ') == frozenset(BLOOD_TYPES)


def test_exact_match_scores_higher_than_compatible():
    scorer = MatchScorer()
    exact = scorer.score(need(), donor(blood_type='O+'), NOW)
    compatible = scorer.score(need(), donor(blood_type='O-'), NOW)
    assert exact.compatibility == Decimal(100)
    assert compatible.compatibility == Decimal(80)
    assert exact.score > compatible.score


@pytest.mark.parametrize('urgency,bonus', [('Critical', 100), ('High', 75), ('Medium', 50), ('Low', 25)])
def test_urgency_bonus(urgency, bonus):
    c = MatchScorer().score(need(urgency_level=urgency), donor(), NOW)
    assert c.urgency_bonus == Decimal(bonus)


@pytest.mark.parametrize('days,expected', [
    (0, 100), (7, 100), (8, 80), (30, 80), (31, 60), (90, 60), (91, 40), (180, 40), (181, FRESHNESS_FLOOR),
])
def test_freshness_steps(days, expected):
    assert freshness_score(NOW - timedelta(days=days), NOW) == expected


def test_freshness_edge_values():
    assert freshness_score(None, NOW) == FRESHNESS_FLOOR
    # registered "in the future" counts as brand new
    assert freshness_score(NOW + timedelta(days=3), NOW) == 100


def test_hash_proximity_is_deterministic_and_bounded():
    est = HashProximityEstimator()
    assert est.estimate('H1', 'H1') == 100.0
    for a, b in [('H1', 'H2'), ('H2', 'H1'), ('HOSP_A', 'HOSP_Z'), ('', 'x')]:
        v = est.estimate(a, b)
        assert 60 <= v < 100
        assert v == est.estimate(a, b)
    # 'H1H2' folds to 2194323, 2194323 % 40 == 3
    assert est.estimate('H1', 'H2') == 63.0


def test_composite_is_weighted_sum_rounded_half_up():
    c = MatchScorer().score(need(), donor(days_old=2), NOW)
    # 0.4*100 + 0.3*100 + 0.2*63 + 0.1*100
    assert c.score == Decimal('92.60')
    assert c.score >= 91


class _FixedProximity(ProximityEstimator):
    def __init__(self, value):
        self.value = value

    def estimate(self, origin_hospital_id, donor_hospital_id):
        return self.value


@pytest.mark.parametrize('proximity', [-50, 0, 33.333, 100, 400])
def test_composite_stays_within_bounds(proximity):
    scorer = MatchScorer(_FixedProximity(proximity))
    for bt in EXPECTED_DONORS['AB+']:
        c = scorer.score(need(blood_type='AB+', urgency_level='Low'), donor(blood_type=bt, days_old=400), NOW)
        assert Decimal(0) <= c.score <= Decimal(100)
        assert Decimal(0) <= c.proximity <= Decimal(100)


def test_scoring_is_deterministic():
    scorer = MatchScorer()
    donors = [donor('D1', 'H2'), donor('D2', 'H3', 'O-', 40), donor('D3', 'H4', 'O+', 200)]
    first = scorer.score_all(need(), donors, NOW)
    second = scorer.score_all(need(), list(reversed(donors)), NOW)
    assert first == second


def test_rank_tie_break_prefers_newer_then_donor_id():
    scorer = MatchScorer(_FixedProximity(80))
    older = donor('D_A', 'H2', days_old=3)
    newer = donor('D_B', 'H3', days_old=1)
    twin = donor('D_0', 'H4', days_old=1)
    ranked = scorer.score_all(need(), [older, newer, twin], NOW)
    assert [c.score for c in ranked] == [ranked[0].score] * 3
    assert [c.donor_id for c in ranked] == ['D_0', 'D_B', 'D_A']


def test_rank_orders_by_score_descending():
    scorer = MatchScorer(_FixedProximity(80))
    ranked = rank(scorer.score(need(), d, NOW) for d in [
        donor('LOW', blood_type='O-', days_old=365),
        donor('HIGH', blood_type='O+', days_old=1),
    ])
    assert [c.donor_id for c in ranked] == ['HIGH', 'LOW']


def test_need_validation_collects_field_errors():
    with pytest.raises(ValidationError) as exc:
        need(organ_type='', blood_type='Q+', urgency_level='Whenever', hospital_id='').validate()
    assert set(exc.value.detail) == {'organType', 'bloodType', 'urgencyLevel', 'hospitalId'}


def test_candidate_as_dict_uses_wire_names():
    d = MatchScorer().score(need(), donor(), NOW).as_dict()
    assert set(d) == {'donorId', 'hospitalId', 'bloodType', 'organs', 'registeredAt',
                      'score', 'compatibility', 'urgencyBonus', 'proximity', 'freshness'}
    assert d['organs'] == ['Kidney']
