"""
Unit-тесты для таблиц удержания налога
"""
import pytest
from decimal import Decimal

from domain.entities.withholding_tax_bracket import WithholdingTaxBracket
from domain.exceptions import ValidationError
from shared.services.withholding_table import (
    BracketWithholdingTable,
    FlatRateWithholdingTable,
    get_withholding_table,
)


def bracket(dependents, min_pay, max_pay, tax_amount):
    return WithholdingTaxBracket(
        year=2026,
        dependents=dependents,
        min_pay=Decimal(min_pay),
        max_pay=Decimal(max_pay) if max_pay is not None else None,
        tax_amount=Decimal(tax_amount),
    )


@pytest.fixture
def brackets():
    return [
        bracket(0, "88501", "90000", "2000"),
        bracket(0, "90001", "95000", "2500"),
        bracket(0, "95001", None, "3000"),
        bracket(2, "88501", "95000", "500"),
        bracket(2, "95001", "100000", "1000"),
    ]


class TestBracketWithholdingTable:

    def test_lookup_by_range(self, brackets):
        table = BracketWithholdingTable(brackets)

        assert table.lookup(Decimal("89000"), 0) == Decimal("2000")
        assert table.lookup(Decimal("92000"), 0) == Decimal("2500")
        assert table.lookup(Decimal("200000"), 0) == Decimal("3000")

    def test_dependents_column_not_exceeding_actual(self, brackets):
        """1 иждивенец - колонка 0, 5 иждивенцев - колонка 2."""
        table = BracketWithholdingTable(brackets)

        assert table.lookup(Decimal("89000"), 1) == Decimal("2000")
        assert table.lookup(Decimal("89000"), 5) == Decimal("500")

    def test_above_top_falls_back_to_highest(self, brackets):
        table = BracketWithholdingTable(brackets)

        assert table.lookup(Decimal("500000"), 2) == Decimal("1000")

    def test_rows_keyed_on_gross_pay_only(self, brackets):
        """Взносы на выбор строки таблицы не влияют."""
        table = BracketWithholdingTable(brackets)

        assert table.lookup(Decimal("92000"), 0, Decimal("5000")) == Decimal("2500")

    def test_zero_dependents_required(self):
        with pytest.raises(ValidationError):
            BracketWithholdingTable([bracket(1, "0", None, "100")])


class TestFlatRateWithholdingTable:

    def test_rate_on_excess(self):
        table = FlatRateWithholdingTable(threshold="88501", rate="0.05", dependent_allowance="8000")

        assert table.lookup(Decimal("100000"), 0) == Decimal("574.95")
        # 100000 - 88501 - 8000 = 3499
        assert table.lookup(Decimal("100000"), 1) == Decimal("174.95")

    def test_contributions_reduce_taxable_income(self):
        table = FlatRateWithholdingTable(threshold="88501", rate="0.05", dependent_allowance="8000")

        # (100000 - 1855 - 88501) x 0.05
        assert table.lookup(Decimal("100000"), 0, Decimal("1855")) == Decimal("482.20")

    def test_contributions_below_threshold_give_zero(self):
        table = FlatRateWithholdingTable(threshold="88501", rate="0.05", dependent_allowance="8000")

        assert table.lookup(Decimal("89000"), 0, Decimal("1500")) == Decimal("0")

    def test_never_negative(self):
        table = FlatRateWithholdingTable(threshold="88501", rate="0.05", dependent_allowance="8000")

        assert table.lookup(Decimal("90000"), 3) == Decimal("0")


class TestGetWithholdingTable:

    def test_brackets_preferred(self, brackets):
        assert isinstance(get_withholding_table(brackets, "88501", 2026), BracketWithholdingTable)

    def test_flat_rate_fallback(self):
        table = get_withholding_table([], "88501", 2026)

        assert isinstance(table, FlatRateWithholdingTable)
        assert table.threshold == Decimal("88501")
