"""Unit tests for fixed-point money helpers."""
from decimal import Decimal

import pytest

from src.wg_common.money import (
    MONEY_QUANTUM,
    display_odds,
    money_to_display,
    to_money,
    truncate,
)


class TestToMoney:
    def test_parses_string(self) -> None:
        assert to_money("0.4") == Decimal("0.40000000")

    def test_parses_int(self) -> None:
        assert to_money(2) == Decimal("2.00000000")

    def test_accepts_eight_places(self) -> None:
        assert to_money("0.00000001") == MONEY_QUANTUM

    def test_rejects_nine_places(self) -> None:
        with pytest.raises(ValueError, match="8 decimal places"):
            to_money("0.000000001")

    def test_rejects_float(self) -> None:
        with pytest.raises(ValueError, match="float"):
            to_money(0.1)  # type: ignore[arg-type]

    @pytest.mark.parametrize("raw", ["NaN", "Infinity", "abc"])
    def test_rejects_non_finite_and_garbage(self, raw: str) -> None:
        with pytest.raises(ValueError):
            to_money(raw)


class TestTruncate:
    def test_rounds_toward_zero(self) -> None:
        assert truncate(Decimal("0.123456789")) == Decimal("0.12345678")

    def test_never_rounds_up(self) -> None:
        assert truncate(Decimal("0.999999999")) == Decimal("0.99999999")


class TestDisplayOdds:
    def test_scenario_a_odds(self) -> None:
        total = Decimal("1.0")
        assert display_odds(total, Decimal("0.4")) == Decimal("2.50")
        assert display_odds(total, Decimal("0.6")) == Decimal("1.67")

    def test_empty_side_has_no_odds(self) -> None:
        assert display_odds(Decimal("1"), Decimal("0")) is None

    def test_half_up(self) -> None:
        assert display_odds(Decimal("1.005"), Decimal("1")) == Decimal("1.01")


class TestMoneyToDisplay:
    def test_strips_trailing_zeros(self) -> None:
        assert money_to_display(Decimal("0.40000000")) == "0.4"

    def test_zero(self) -> None:
        assert money_to_display(Decimal("0E-8")) == "0"

    def test_no_exponent_notation(self) -> None:
        assert money_to_display(Decimal("100.00000000")) == "100"
