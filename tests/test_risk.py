"""Tests for Action Priority classification."""
import pytest

from fmeaflow.analysis_tree.risk import (
    ActionPriority,
    classify,
    get_policy,
    set_policy,
    simplified_ap_policy,
    validate_score,
)

SCORES = range(0, 11)


class TestSimplifiedPolicy:
    """Thresholds of the default policy."""

    def test_high_severity_high_occurrence_is_high(self):
        """S >= 9 and O >= 6 is HIGH for every detection."""
        for s in (9, 10):
            for o in range(6, 11):
                for d in SCORES:
                    assert classify(s, o, d) == ActionPriority.HIGH

    def test_low_severity_is_low(self):
        """S <= 3 is LOW regardless of O and D."""
        for s in range(0, 4):
            for o in SCORES:
                for d in SCORES:
                    assert classify(s, o, d) == ActionPriority.LOW

    @pytest.mark.parametrize(
        "s,o,d,expected",
        [
            (9, 4, 7, ActionPriority.HIGH),
            (9, 4, 6, ActionPriority.MEDIUM),
            (10, 3, 10, ActionPriority.MEDIUM),
            (8, 8, 1, ActionPriority.HIGH),
            (7, 6, 5, ActionPriority.HIGH),
            (7, 6, 4, ActionPriority.MEDIUM),
            (7, 4, 7, ActionPriority.HIGH),
            (7, 3, 4, ActionPriority.MEDIUM),
            (6, 8, 7, ActionPriority.HIGH),
            (6, 8, 6, ActionPriority.MEDIUM),
            (4, 6, 9, ActionPriority.HIGH),
            (4, 7, 8, ActionPriority.MEDIUM),
            (5, 0, 0, ActionPriority.MEDIUM),
            (0, 0, 0, ActionPriority.LOW),
        ],
    )
    def test_band_boundaries(self, s, o, d, expected):
        """Boundary cases of each severity band."""
        assert simplified_ap_policy(s, o, d) == expected

    def test_priority_codes(self):
        """Tiers serialise as the single-letter codes."""
        assert [p.value for p in ActionPriority] == ["L", "M", "H"]


class TestPolicySwap:
    """Replacing the active policy."""

    def test_set_policy_returns_previous(self, restore_policy):
        """set_policy hands back the policy it replaced."""
        previous = set_policy(lambda s, o, d: ActionPriority.HIGH)
        assert previous is simplified_ap_policy
        assert classify(1, 1, 1) == ActionPriority.HIGH

    def test_get_policy_reflects_swap(self, restore_policy):
        """get_policy returns the installed function."""

        def always_low(s, o, d):
            return ActionPriority.LOW

        set_policy(always_low)
        assert get_policy() is always_low
        assert classify(10, 10, 10) == ActionPriority.LOW


class TestValidateScore:
    """Score validation used by entity constructors."""

    def test_accepts_full_range(self):
        """0 through 10 are accepted."""
        for value in SCORES:
            assert validate_score(value) == value

    @pytest.mark.parametrize("value", [-1, 11, 3.5, "7", None, True])
    def test_rejects_invalid(self, value):
        """Out-of-range and non-integer values raise ValueError."""
        with pytest.raises(ValueError):
            validate_score(value, "severity")
