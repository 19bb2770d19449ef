"""Tests for channel allocation and feature toggles."""

import itertools
import random

import pytest

from feeflow_app.allocation.manager import AllocationManager, redistribute
from feeflow_app.config.defaults import AllocationParams
from feeflow_app.errors import UnknownChannelError, ValidationError
from feeflow_app.models.distribution import Channel

MM = Channel.MARKET_MAKING
BB = Channel.BUYBACK_BURN
LIQ = Channel.LIQUIDITY
CR = Channel.CREATOR_REVENUE


class TestRedistribute:
    """Test integer redistribution of freed percentage points."""

    def test_remainder_goes_to_first_peers(self):
        assert redistribute(25, [BB, LIQ, CR]) == {BB: 9, LIQ: 8, CR: 8}

    def test_remainder_follows_channel_order_not_argument_order(self):
        assert redistribute(7, [CR, MM]) == {MM: 4, CR: 3}

    def test_zero_amount(self):
        assert redistribute(0, [MM, BB]) == {MM: 0, BB: 0}

    def test_duplicate_peers_counted_once(self):
        assert redistribute(10, [LIQ, LIQ, CR]) == {LIQ: 5, CR: 5}

    def test_deltas_always_sum_to_amount(self):
        channels = list(Channel)
        for size in range(1, 5):
            for peers in itertools.combinations(channels, size):
                for amount in (1, 2, 3, 33, 34, 99, 100):
                    deltas = redistribute(amount, peers)
                    assert sum(deltas.values()) == amount
                    assert max(deltas.values()) - min(deltas.values()) <= 1

    def test_empty_peers_rejected(self):
        with pytest.raises(ValidationError):
            redistribute(10, [])

    @pytest.mark.parametrize("amount", [-1, 2.5, "10", True])
    def test_invalid_amount_rejected(self, amount):
        with pytest.raises(ValidationError):
            redistribute(amount, [MM])


class TestSetAllocations:
    """Test validated replacement of the allocation map."""

    def test_defaults_are_even(self):
        manager = AllocationManager()
        assert manager.get_allocations() == {MM: 25, BB: 25, LIQ: 25, CR: 25}
        assert all(manager.get_features().values())

    def test_initial_split_from_params(self):
        manager = AllocationManager(AllocationParams(market_making=40, buyback_burn=30,
                                                     liquidity=20, creator_revenue=10))
        assert manager.get_allocations() == {MM: 40, BB: 30, LIQ: 20, CR: 10}

    def test_invalid_initial_split_rejected(self):
        with pytest.raises(ValidationError):
            AllocationManager(AllocationParams(market_making=50))

    def test_string_keys_and_missing_channels(self):
        manager = AllocationManager()
        result = manager.set_allocations({"market_making": 60, "liquidity": 40})
        assert result == {MM: 60, BB: 0, LIQ: 40, CR: 0}

    def test_enum_keys_and_integral_floats(self):
        manager = AllocationManager()
        manager.set_allocations({MM: 50.0, BB: 50})
        assert manager.get_allocations()[MM] == 50
        assert isinstance(manager.get_allocations()[MM], int)

    @pytest.mark.parametrize("allocations", [
        {"market_making": 50, "buyback_burn": 40},
        {"market_making": 110, "buyback_burn": -10},
        {"market_making": 33.5, "buyback_burn": 66.5},
        {"market_making": "50", "buyback_burn": 50},
        {"market_making": float("nan"), "buyback_burn": 100},
        {"staking": 100},
        ["market_making", 100],
    ])
    def test_invalid_input_leaves_state_unchanged(self, allocations):
        manager = AllocationManager()
        before = manager.get_allocations()

        with pytest.raises(ValidationError) as exc_info:
            manager.set_allocations(allocations)

        assert exc_info.value.issues
        assert manager.get_allocations() == before

    def test_returned_map_is_a_copy(self):
        manager = AllocationManager()
        snapshot = manager.get_allocations()
        snapshot[MM] = 100
        assert manager.get_allocations()[MM] == 25


class TestFeatureToggles:
    """Test disabling and re-enabling channels."""

    def test_disable_redistributes_to_enabled_peers(self):
        manager = AllocationManager()
        manager.set_feature_enabled("market_making", False)

        assert manager.get_allocations() == {MM: 0, BB: 34, LIQ: 33, CR: 33}
        assert manager.is_enabled(MM) is False

    def test_successive_disables_concentrate_on_last_channel(self):
        manager = AllocationManager()
        manager.set_feature_enabled(MM, False)
        manager.set_feature_enabled(BB, False)
        assert manager.get_allocations() == {MM: 0, BB: 0, LIQ: 50, CR: 50}

        manager.set_feature_enabled(LIQ, False)
        assert manager.get_allocations() == {MM: 0, BB: 0, LIQ: 0, CR: 100}
        assert manager.enabled_channels() == [CR]

    def test_last_enabled_channel_keeps_allocation(self):
        manager = AllocationManager()
        for channel in (MM, BB, LIQ):
            manager.set_feature_enabled(channel, False)

        manager.set_feature_enabled(CR, False)

        assert manager.get_allocations()[CR] == 100
        assert manager.enabled_channels() == []

    def test_disabling_zero_allocation_channel_moves_nothing(self):
        manager = AllocationManager()
        manager.set_allocations({MM: 50, BB: 50})
        manager.set_feature_enabled(LIQ, False)
        assert manager.get_allocations() == {MM: 50, BB: 50, LIQ: 0, CR: 0}
        assert manager.is_enabled(LIQ) is False

    def test_reenable_does_not_restore_allocation(self):
        manager = AllocationManager()
        manager.set_feature_enabled(MM, False)
        manager.set_feature_enabled(MM, True)
        assert manager.is_enabled(MM) is True
        assert manager.get_allocations() == {MM: 0, BB: 34, LIQ: 33, CR: 33}

    def test_same_value_is_noop(self):
        manager = AllocationManager()
        manager.set_feature_enabled(MM, True)
        assert manager.get_allocations() == {MM: 25, BB: 25, LIQ: 25, CR: 25}

    def test_sum_stays_100_across_random_toggles(self):
        manager = AllocationManager()
        rng = random.Random(7)
        for _ in range(200):
            manager.set_feature_enabled(rng.choice(list(Channel)), rng.random() < 0.5)
            allocations = manager.get_allocations()
            assert sum(allocations.values()) == 100
            assert all(value >= 0 for value in allocations.values())

    def test_unknown_channel_rejected(self):
        manager = AllocationManager()
        with pytest.raises(UnknownChannelError) as exc_info:
            manager.set_feature_enabled("staking", False)
        assert exc_info.value.channel == "staking"
        assert isinstance(exc_info.value, ValidationError)

    def test_unknown_channel_rejected_by_is_enabled(self):
        with pytest.raises(UnknownChannelError):
            AllocationManager().is_enabled("staking")
