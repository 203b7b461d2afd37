from decimal import Decimal

import pytest

from perfeval.core.exceptions import (
    CategoryNotFoundError,
    InvalidWeightError,
    WeightExceedsTotalError,
    WeightSumInvalidError,
)
from perfeval.scoring.weights import (
    CategoryWeight,
    ProposedWeight,
    rebalance_weights,
    validate_weights,
)


def _weights(*pairs):
    return [CategoryWeight(category_id=cid, weight=Decimal(w)) for cid, w in pairs]


def _as_dict(result):
    return {c.category_id: c.weight for c in result}


# ---------------------------------------------------------------------------
# validate_weights
# ---------------------------------------------------------------------------

class TestValidateWeights:
    def test_exact_hundred_is_valid(self):
        result = validate_weights(_weights((1, "60.00"), (2, "40.00")))
        assert result.is_valid
        assert result.total_weight == Decimal("100.00")
        assert result.remaining_weight == Decimal("0.00")

    def test_within_tolerance_is_valid(self):
        assert validate_weights(_weights((1, "60.00"), (2, "39.99"))).is_valid
        assert validate_weights(_weights((1, "60.00"), (2, "40.01"))).is_valid

    def test_outside_tolerance_is_invalid(self):
        result = validate_weights(_weights((1, "60.00"), (2, "39.98")))
        assert not result.is_valid
        assert result.total_weight == Decimal("99.98")
        assert result.remaining_weight == Decimal("0.02")

    def test_over_hundred_has_negative_remaining(self):
        result = validate_weights(_weights((1, "70"), (2, "40")))
        assert not result.is_valid
        assert result.remaining_weight == Decimal("-10.00")

    def test_empty_is_invalid(self):
        result = validate_weights([])
        assert not result.is_valid
        assert result.total_weight == Decimal("0.00")

    def test_custom_tolerance(self):
        assert validate_weights(_weights((1, "99.5")), tolerance=Decimal("0.5")).is_valid

    def test_does_not_mutate_input(self):
        current = _weights((1, "10"), (2, "20"))
        validate_weights(current)
        assert _as_dict(current) == {1: Decimal("10"), 2: Decimal("20")}


# ---------------------------------------------------------------------------
# rebalance_weights
# ---------------------------------------------------------------------------

class TestRebalanceWeights:
    def test_proportional_redistribution(self):
        # A pinned to 50; B and C keep their 60:40 ratio over the other 50
        current = _weights((1, "40"), (2, "36"), (3, "24"))
        result = rebalance_weights(current, [ProposedWeight(1, Decimal("50"))])
        assert _as_dict(result) == {
            1: Decimal("50.00"),
            2: Decimal("30.00"),
            3: Decimal("20.00"),
        }

    def test_result_preserves_input_order(self):
        current = _weights((3, "30"), (1, "30"), (2, "40"))
        result = rebalance_weights(current, [ProposedWeight(2, Decimal("50"))])
        assert [c.category_id for c in result] == [3, 1, 2]

    def test_rounding_residual_goes_to_largest_unfixed(self):
        current = _weights((1, "40"), (2, "20"), (3, "20"), (4, "20"))
        result = _as_dict(rebalance_weights(current, [ProposedWeight(1, Decimal("0"))]))
        # 100 / 3 = 33.33 each, 0.01 residual to the lowest-id among the largest
        assert result == {
            1: Decimal("0.00"),
            2: Decimal("33.34"),
            3: Decimal("33.33"),
            4: Decimal("33.33"),
        }
        assert sum(result.values()) == Decimal("100.00")

    def test_zero_old_total_splits_evenly(self):
        current = _weights((1, "100"), (2, "0"), (3, "0"))
        result = _as_dict(rebalance_weights(current, [ProposedWeight(1, Decimal("50"))]))
        assert result == {1: Decimal("50.00"), 2: Decimal("25.00"), 3: Decimal("25.00")}

    def test_all_fixed_summing_to_hundred(self):
        current = _weights((1, "50"), (2, "50"))
        result = rebalance_weights(
            current,
            [ProposedWeight(1, Decimal("70")), ProposedWeight(2, Decimal("30"))],
        )
        assert _as_dict(result) == {1: Decimal("70.00"), 2: Decimal("30.00")}

    def test_all_fixed_not_summing_to_hundred(self):
        current = _weights((1, "50"), (2, "50"))
        with pytest.raises(WeightSumInvalidError):
            rebalance_weights(
                current,
                [ProposedWeight(1, Decimal("60")), ProposedWeight(2, Decimal("30"))],
            )

    def test_fixed_total_over_hundred(self):
        current = _weights((1, "50"), (2, "30"), (3, "20"))
        with pytest.raises(WeightExceedsTotalError) as exc_info:
            rebalance_weights(
                current,
                [ProposedWeight(1, Decimal("70")), ProposedWeight(2, Decimal("40"))],
            )
        assert exc_info.value.fixed_total == Decimal("110.00")
        assert exc_info.value.status_code == 422

    def test_unknown_category(self):
        with pytest.raises(CategoryNotFoundError):
            rebalance_weights(_weights((1, "100")), [ProposedWeight(99, Decimal("10"))])

    def test_empty_proposal(self):
        with pytest.raises(InvalidWeightError):
            rebalance_weights(_weights((1, "100")), [])

    def test_duplicate_proposal(self):
        with pytest.raises(InvalidWeightError):
            rebalance_weights(
                _weights((1, "50"), (2, "50")),
                [ProposedWeight(1, Decimal("10")), ProposedWeight(1, Decimal("20"))],
            )

    def test_negative_weight(self):
        with pytest.raises(InvalidWeightError):
            rebalance_weights(_weights((1, "50"), (2, "50")), [ProposedWeight(1, Decimal("-1"))])

    def test_proposed_weight_rounded_to_cents(self):
        current = _weights((1, "50"), (2, "50"))
        result = _as_dict(rebalance_weights(current, [ProposedWeight(1, Decimal("33.333"))]))
        assert result == {1: Decimal("33.33"), 2: Decimal("66.67")}

    def test_does_not_mutate_input(self):
        current = _weights((1, "40"), (2, "36"), (3, "24"))
        rebalance_weights(current, [ProposedWeight(1, Decimal("50"))])
        assert _as_dict(current) == {1: Decimal("40"), 2: Decimal("36"), 3: Decimal("24")}
