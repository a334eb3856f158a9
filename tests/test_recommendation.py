import numpy as np
import pytest

from trendscope.decision import (
    Confidence,
    Direction,
    Label,
    Recommendation,
    adapt_to_profile,
    confidence_for,
    direction_for,
    label_for_score,
    recommend,
)
from trendscope.profiles import PROFILES, ProfileKey, SignalWeights

ALL = ("rsi", "macd", "ema", "adx", "bollinger", "volume", "pattern")


def test_all_max_signals_give_strong_buy():
    rec = recommend({k: 2.0 for k in ALL}, SignalWeights())
    assert rec.score == pytest.approx(10.0)
    assert rec.label is Label.STRONG_BUY
    assert rec.confidence is Confidence.HIGH
    assert rec.max_score == pytest.approx(14.0)


def test_all_min_signals_give_strong_sell():
    rec = recommend({k: -2.0 for k in ALL}, PROFILES[ProfileKey.SWING].weights)
    assert rec.score == pytest.approx(-10.0)
    assert rec.label is Label.STRONG_SELL


def test_unavailable_signals_drop_out_of_max():
    rec = recommend({"rsi": 2.0, "macd": None}, {"rsi": 1.0, "macd": 5.0})
    assert rec.score == pytest.approx(10.0)
    assert rec.max_score == pytest.approx(2.0)
    # tylko jeden sygnał: pewność zawsze niska
    assert rec.confidence is Confidence.LOW


def test_no_signals_is_hold():
    rec = recommend({k: None for k in ALL}, SignalWeights())
    assert rec.score == 0.0
    assert rec.label is Label.HOLD
    assert rec.confidence is Confidence.LOW


@pytest.mark.parametrize(
    "score,label",
    [
        (7.01, Label.STRONG_BUY),
        (7.0, Label.BUY),
        (3.01, Label.BUY),
        (3.0, Label.HOLD),
        (-3.0, Label.HOLD),
        (-3.01, Label.SELL),
        (-7.0, Label.STRONG_SELL),
    ],
)
def test_label_thresholds(score, label):
    assert label_for_score(score) is label


def test_label_is_monotonic_in_score():
    ranks = [label_for_score(s).rank for s in np.arange(-10, 10.25, 0.25)]
    assert ranks == sorted(ranks)


def test_confidence_levels():
    assert confidence_for(10.0, {"rsi": 2.0}) is Confidence.LOW
    assert confidence_for(4.0, {"a": 1.0, "b": 1.0, "c": 1.0}) is Confidence.MEDIUM
    assert confidence_for(8.0, {"a": 2.0, "b": 2.0}) is Confidence.HIGH
    # sprzeczne sygnały
    assert confidence_for(8.0, {"a": 2.0, "b": -2.0, "c": 2.0}) is Confidence.LOW
    assert confidence_for(1.0, {"a": 2.0, "b": 2.0}) is Confidence.LOW


def test_direction_for_label():
    assert direction_for(Label.STRONG_BUY) is Direction.LONG
    assert direction_for(Label.BUY) is Direction.LONG
    assert direction_for(Label.HOLD) is Direction.NONE
    assert direction_for(Label.SELL) is Direction.SHORT
    assert Direction.SHORT.sign == -1
    assert Direction.NONE.sign == 0


def test_recommendation_to_dict():
    rec = recommend({"rsi": 1.0, "macd": 0.5}, {"rsi": 1.0, "macd": 1.0})
    d = rec.to_dict()
    assert d["label"] == rec.label.value
    assert d["signals"] == {"rsi": 1.0, "macd": 0.5}


def _rec(label):
    return Recommendation(label=label, score=0.0, confidence=Confidence.MEDIUM)


def test_scalping_filters(make_snapshot):
    prof = PROFILES[ProfileKey.SCALPING]
    quiet = make_snapshot(volatility=5.0, adx=30.0)
    assert adapt_to_profile(_rec(Label.BUY), quiet, prof).label is Label.HOLD

    weak = make_snapshot(volatility=20.0, adx=10.0)
    assert adapt_to_profile(_rec(Label.SELL), weak, prof).label is Label.HOLD

    oversold = make_snapshot(volatility=20.0, adx=30.0, rsi=35.0)
    v = adapt_to_profile(_rec(Label.BUY), oversold, prof)
    assert v.label is Label.STRONG_BUY
    assert v.changed


def test_swing_weakens_strong_calls_without_trend(make_snapshot):
    prof = PROFILES[ProfileKey.SWING]
    snap = make_snapshot(adx=15.0)
    assert adapt_to_profile(_rec(Label.STRONG_BUY), snap, prof).label is Label.BUY
    assert adapt_to_profile(_rec(Label.STRONG_SELL), snap, prof).label is Label.SELL
    assert not adapt_to_profile(_rec(Label.BUY), snap, prof).changed


def test_position_waits_for_trend_and_calm(make_snapshot):
    prof = PROFILES[ProfileKey.POSITION]
    assert adapt_to_profile(_rec(Label.BUY), make_snapshot(adx=20.0), prof).label is Label.HOLD
    wild = make_snapshot(adx=30.0, volatility=40.0)
    assert adapt_to_profile(_rec(Label.SELL), wild, prof).label is Label.HOLD
    calm = make_snapshot(adx=30.0, volatility=12.0)
    assert adapt_to_profile(_rec(Label.BUY), calm, prof).label is Label.BUY


def test_longterm_mapping(make_snapshot):
    prof = PROFILES[ProfileKey.LONGTERM]
    snap = make_snapshot()
    assert adapt_to_profile(_rec(Label.SELL), snap, prof).label is Label.HOLD
    assert adapt_to_profile(_rec(Label.STRONG_BUY), snap, prof).label is Label.BUY
    assert adapt_to_profile(_rec(Label.STRONG_SELL), snap, prof).label is Label.SELL
    v = adapt_to_profile(_rec(Label.BUY), snap, prof)
    assert v.label is Label.BUY and v.note


def test_missing_indicators_use_neutral_defaults(make_snapshot):
    prof = PROFILES[ProfileKey.SCALPING]
    snap = make_snapshot(volatility=None)
    # vol=15, adx=20, rsi=50 -> bez zmian
    assert not adapt_to_profile(_rec(Label.BUY), snap, prof).changed
