"""
Property-based tests for the pure scoring rules.

    - rebalance_weights always lands on exactly 100.00 with non-negative weights
    - pinned categories keep their proposed weight
    - compute_total_score stays within [0, 100] and is monotonic in each score
"""

from decimal import Decimal

from hypothesis import given, settings
from hypothesis import strategies as st

from perfeval.scoring.aggregation import CriteriaCategoryRef, CriterionScore, compute_total_score
from perfeval.scoring.utils import HUNDRED
from perfeval.scoring.weights import CategoryWeight, ProposedWeight, rebalance_weights, validate_weights

# ---------------------------------------------------------------------------
# Shared strategies
# ---------------------------------------------------------------------------

cents_st = st.integers(min_value=0, max_value=10000).map(lambda c: Decimal(c) / 100)


@st.composite
def categories_st(draw, min_size=2, max_size=8):
    """Active categories with arbitrary 2-dp weights in [0, 100]."""
    weights = draw(st.lists(cents_st, min_size=min_size, max_size=max_size))
    return [CategoryWeight(category_id=i + 1, weight=w) for i, w in enumerate(weights)]


@st.composite
def valid_weights_st(draw):
    """Integer-percent weights that total exactly 100."""
    n = draw(st.integers(min_value=1, max_value=6))
    cuts = sorted(draw(st.lists(st.integers(0, 100), min_size=n - 1, max_size=n - 1)))
    bounds = [0] + cuts + [100]
    return [Decimal(bounds[i + 1] - bounds[i]) for i in range(n)]


# ---------------------------------------------------------------------------
# Weight governance
# ---------------------------------------------------------------------------

@settings(max_examples=300)
@given(current=categories_st(), data=st.data())
def test_rebalance_totals_exactly_hundred(current, data):
    pinned = data.draw(st.sampled_from(current))
    fixed = data.draw(cents_st)

    result = rebalance_weights(current, [ProposedWeight(pinned.category_id, fixed)])

    assert sum(c.weight for c in result) == HUNDRED
    assert all(c.weight >= 0 for c in result)
    assert validate_weights(result).is_valid


@settings(max_examples=300)
@given(current=categories_st(min_size=3), data=st.data())
def test_rebalance_keeps_pinned_weight(current, data):
    pinned = data.draw(st.sampled_from(current))
    fixed = data.draw(cents_st)

    result = {c.category_id: c.weight for c in rebalance_weights(current, [ProposedWeight(pinned.category_id, fixed)])}

    # Only an unfixed category ever absorbs the rounding residual
    assert result[pinned.category_id] == fixed


@settings(max_examples=300)
@given(current=categories_st(min_size=1))
def test_validate_iff_within_tolerance(current):
    total = sum(c.weight for c in current)
    assert validate_weights(current).is_valid == (abs(total - HUNDRED) <= Decimal("0.01"))


@settings(max_examples=300)
@given(current=categories_st(), data=st.data())
def test_rebalance_is_idempotent(current, data):
    pinned = data.draw(st.sampled_from(current))
    proposal = [ProposedWeight(pinned.category_id, data.draw(cents_st))]

    once = rebalance_weights(current, proposal)
    twice = rebalance_weights(once, proposal)

    assert [c.weight for c in twice] == [c.weight for c in once]


@settings(max_examples=200)
@given(current=categories_st())
def test_rebalance_preserves_category_set(current):
    result = rebalance_weights(current, [ProposedWeight(current[0].category_id, Decimal("10"))])
    assert [c.category_id for c in result] == [c.category_id for c in current]


# ---------------------------------------------------------------------------
# Aggregation
# ---------------------------------------------------------------------------

@settings(max_examples=300)
@given(weights=valid_weights_st(), data=st.data())
def test_total_within_bounds(weights, data):
    refs = {i + 1: CriteriaCategoryRef(i + 1, w) for i, w in enumerate(weights)}
    scores = [
        CriterionScore(cid, data.draw(st.integers(min_value=1, max_value=5)))
        for cid in refs
    ]

    total = compute_total_score(scores, refs)

    assert Decimal("0") <= total <= HUNDRED


@settings(max_examples=300)
@given(weights=valid_weights_st(), data=st.data())
def test_total_monotonic_in_each_score(weights, data):
    refs = {i + 1: CriteriaCategoryRef(i + 1, w) for i, w in enumerate(weights)}
    raw = {cid: data.draw(st.integers(min_value=1, max_value=4)) for cid in refs}
    bumped = data.draw(st.sampled_from(sorted(refs)))

    before = compute_total_score([CriterionScore(c, s) for c, s in raw.items()], refs)
    raw[bumped] += 1
    after = compute_total_score([CriterionScore(c, s) for c, s in raw.items()], refs)

    assert after >= before


@settings(max_examples=200)
@given(weights=valid_weights_st(), score=st.integers(min_value=1, max_value=5))
def test_uniform_scores_map_linearly(weights, score):
    refs = {i + 1: CriteriaCategoryRef(i + 1, w) for i, w in enumerate(weights)}
    scores = [CriterionScore(cid, score) for cid in refs]

    assert compute_total_score(scores, refs) == Decimal(score * 20)
