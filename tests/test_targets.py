import pytest

from trendscope.decision import Direction
from trendscope.profiles import PROFILES, ProfileKey, TargetSelection
from trendscope.risk.targets import (
    Candidate,
    atr_estimate,
    risk_reward_ratio,
    select_stop,
    select_target,
    stop_candidates,
    target_candidates,
)

SWING = PROFILES[ProfileKey.SWING]


def test_risk_reward_ratio():
    assert risk_reward_ratio(100.0, 110.0, 95.0) == pytest.approx(2.0)
    assert risk_reward_ratio(100.0, 90.0, 105.0) == pytest.approx(2.0)
    assert risk_reward_ratio(100.0, 110.0, 100.0) is None


def test_atr_estimate():
    assert atr_estimate(100.0, 15.87) == pytest.approx(1.0, rel=1e-3)
    assert atr_estimate(100.0, None) is None
    assert atr_estimate(100.0, 0.0) is None


def test_stop_candidates_long(make_snapshot):
    snap = make_snapshot(supports=(90.0, 97.0), resistances=(105.0,), sma_short=99.0, ema=101.0)
    cands = stop_candidates(snap, Direction.LONG, SWING, 100.0)
    by_source = {c.source: c for c in cands}
    assert set(by_source) == {"support", "atr", "moving_average", "percent"}
    assert by_source["support"].value == 97.0
    assert by_source["moving_average"].value == 99.0
    assert by_source["percent"].value == pytest.approx(98.0)
    assert all(c.value < 100.0 for c in cands)

    best = select_stop(cands, 100.0)
    assert best.source == "support"


def test_stop_candidates_short(make_snapshot):
    snap = make_snapshot(supports=(95.0,), resistances=(103.0, 108.0))
    cands = stop_candidates(snap, Direction.SHORT, SWING, 100.0)
    assert all(c.value > 100.0 for c in cands)
    assert {c.source for c in cands} >= {"resistance", "percent"}
    assert select_stop(cands, 100.0).value == 103.0


def test_no_candidates_without_direction(make_snapshot):
    snap = make_snapshot(supports=(95.0,), resistances=(105.0,))
    assert stop_candidates(snap, Direction.NONE, SWING, 100.0) == []
    assert target_candidates(snap, Direction.NONE, SWING, 100.0) == []


def test_target_candidates_long_with_fibonacci(make_snapshot):
    snap = make_snapshot(supports=(90.0,), resistances=(105.0,))
    cands = target_candidates(snap, Direction.LONG, SWING, 100.0)
    values = {c.source: c.value for c in cands}
    assert values["resistance"] == 105.0
    assert values["fib_38"] == pytest.approx(103.82)
    assert values["fib_62"] == pytest.approx(106.18)
    assert values["fib_100"] == pytest.approx(110.0)
    assert values["percent"] == pytest.approx(103.0)


def test_target_candidates_short(make_snapshot):
    snap = make_snapshot(supports=(95.0,), resistances=(110.0,))
    cands = target_candidates(snap, Direction.SHORT, SWING, 100.0)
    assert all(c.value < 100.0 for c in cands)
    assert {c.source: c.value for c in cands}["fib_100"] == pytest.approx(90.0)


def test_select_target_nearest_within_band():
    price = 100.0
    cands = [Candidate(101.0, 1.0, "percent"), Candidate(101.5, 3.0, "resistance"), Candidate(105.0, 2.0, "fib_62")]
    assert select_target(cands, price, TargetSelection.NEAREST_WITHIN_BAND).value == 101.5

    far = [Candidate(103.0, 3.0, "resistance"), Candidate(105.0, 1.0, "percent")]
    assert select_target(far, price, TargetSelection.NEAREST_WITHIN_BAND).value == 103.0


def test_select_target_weight_over_distance():
    price = 100.0
    cands = [Candidate(102.0, 3.0, "resistance"), Candidate(101.0, 1.0, "percent")]
    assert select_target(cands, price, TargetSelection.WEIGHT_OVER_DISTANCE).value == 102.0

    zero = [Candidate(100.0, 3.0, "resistance"), Candidate(101.0, 1.0, "percent")]
    assert select_target(zero, price, TargetSelection.WEIGHT_OVER_DISTANCE).value == 101.0


def test_select_target_farthest_credible():
    price = 100.0
    cands = [Candidate(103.0, 3.0, "resistance"), Candidate(110.0, 1.5, "fib_100"), Candidate(115.0, 1.0, "percent")]
    assert select_target(cands, price, TargetSelection.FARTHEST_CREDIBLE).value == 110.0

    weak = [Candidate(105.0, 1.0, "percent"), Candidate(110.0, 1.2, "other")]
    assert select_target(weak, price, TargetSelection.FARTHEST_CREDIBLE).value == 110.0


def test_select_target_highest_weight_and_empty():
    cands = [Candidate(103.0, 1.0, "a"), Candidate(107.0, 2.0, "b")]
    assert select_target(cands, 100.0, TargetSelection.HIGHEST_WEIGHT).value == 107.0
    assert select_target([], 100.0, TargetSelection.HIGHEST_WEIGHT) is None
    assert select_stop([], 100.0) is None
