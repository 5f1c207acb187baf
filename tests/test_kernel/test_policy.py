"""
Tests for ReputationPolicy
"""

import pytest
from pydantic import ValidationError

from fruitflow.kernel.policy import ReputationPolicy


def test_defaults() -> None:
    policy = ReputationPolicy()

    assert (policy.weight_first_time, policy.weight_repeat, policy.weight_loyal) == (0.05, 0.15, 0.80)
    assert policy.repeat_purchase_min == 2
    assert policy.loyal_purchase_min == 11
    assert policy.min_ratings_for_suspension == 10
    assert policy.suspension_rating_threshold == 1.5
    assert policy.default_manager_username == "Nhom1"


def test_weights_must_increase() -> None:
    with pytest.raises(ValidationError, match="strictly increasing"):
        ReputationPolicy(weight_first_time=0.5, weight_repeat=0.15)


def test_loyal_tier_must_follow_repeat_tier() -> None:
    with pytest.raises(ValidationError):
        ReputationPolicy(repeat_purchase_min=5, loyal_purchase_min=5)


def test_rating_scale_must_be_ordered() -> None:
    with pytest.raises(ValidationError):
        ReputationPolicy(rating_min=5, rating_max=5)
