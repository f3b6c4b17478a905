"""Unit tests for parimutuel settlement math (pure functions)."""
from datetime import UTC, datetime

import pytest

from src.pb_common.enums import Position
from src.pb_market.domain.models import Bet, Market
from src.pb_market.domain.settlement import apply_stake, compute_payouts


def _make_market(**kwargs) -> Market:
    defaults = dict(
        id="MKT-1", title="t", description="d", created_by="alice",
        created_at=datetime.now(UTC), ends_at=datetime.now(UTC),
        resolved=False, outcome=None, yes_pool=5.0, no_pool=5.0,
    )
    defaults.update(kwargs)
    return Market(**defaults)


def _bet(user_id: str, amount: float, position: Position, market_id: str = "MKT-1") -> Bet:
    return Bet(
        id=f"bet-{user_id}-{amount}-{position.value}", user_id=user_id, market_id=market_id,
        amount=amount, position=position, odds_at_bet=0.5, created_at=datetime.now(UTC),
    )


class TestApplyStake:
    def test_yes_stake_moves_odds_after_impact(self) -> None:
        market = _make_market()
        odds = apply_stake(market, Position.YES, 20)
        assert market.yes_pool == 25
        assert market.no_pool == 5
        assert odds == pytest.approx(25 / 30)

    def test_no_stake_lowers_yes_odds(self) -> None:
        market = _make_market()
        odds = apply_stake(market, Position.NO, 10)
        assert market.no_pool == 15
        assert odds == pytest.approx(5 / 20)


class TestComputePayouts:
    def test_two_bettor_scenario(self) -> None:
        # seeded 5/5, A: 20 yes, B: 10 no → pools 25/15
        market = _make_market(yes_pool=25, no_pool=15, resolved=True, outcome=True)
        bets = [_bet("A", 20, Position.YES), _bet("B", 10, Position.NO)]

        payouts = compute_payouts(market, bets)

        assert payouts == {"A": pytest.approx(32.0)}

    def test_no_outcome_pays_no_side(self) -> None:
        market = _make_market(yes_pool=25, no_pool=15, resolved=True, outcome=False)
        bets = [_bet("A", 20, Position.YES), _bet("B", 10, Position.NO)]

        payouts = compute_payouts(market, bets)

        assert payouts == {"B": pytest.approx(10 / 15 * 40)}

    def test_multiple_bets_by_one_user_are_summed(self) -> None:
        market = _make_market(yes_pool=35, no_pool=15, resolved=True, outcome=True)
        bets = [
            _bet("A", 20, Position.YES),
            _bet("A", 10, Position.YES),
            _bet("B", 10, Position.NO),
        ]

        payouts = compute_payouts(market, bets)

        assert payouts["A"] == pytest.approx(30 / 35 * 50)
        assert "B" not in payouts

    def test_payouts_proportional_to_stake(self) -> None:
        market = _make_market(yes_pool=35, no_pool=25, resolved=True, outcome=True)
        bets = [
            _bet("A", 20, Position.YES),
            _bet("C", 10, Position.YES),
            _bet("B", 20, Position.NO),
        ]

        payouts = compute_payouts(market, bets)

        assert payouts["A"] == pytest.approx(2 * payouts["C"])
        # Everything except the winning seed's share is paid out
        assert sum(payouts.values()) == pytest.approx(60 * (35 - 5) / 35)

    def test_zero_winning_pool_pays_nothing(self) -> None:
        market = _make_market(yes_pool=0, no_pool=10, resolved=True, outcome=True)
        assert compute_payouts(market, [_bet("B", 10, Position.NO)]) == {}

    def test_seed_only_market_pays_nothing(self) -> None:
        market = _make_market(resolved=True, outcome=True)
        assert compute_payouts(market, []) == {}

    def test_bets_from_other_markets_ignored(self) -> None:
        market = _make_market(yes_pool=25, no_pool=5, resolved=True, outcome=True)
        bets = [_bet("A", 20, Position.YES), _bet("X", 50, Position.YES, market_id="MKT-2")]
        assert set(compute_payouts(market, bets)) == {"A"}

    def test_requires_outcome(self) -> None:
        with pytest.raises(ValueError):
            compute_payouts(_make_market(), [])
