"""
Интеграционные тесты загрузки таблицы удержания налога
"""
import pytest
from datetime import date
from decimal import Decimal

from domain.exceptions import ConflictError, ValidationError
from shared.services.period_settlement_orchestrator import PeriodSettlementOrchestrator
from shared.services.salary_profile_service import SalaryProfileService
from shared.services.withholding_bracket_service import WithholdingBracketService
from tests.utils.payroll_helpers import COMPANY_ID, YEAR


def column(rows, dependents):
    return [row for row in rows if row["dependents"] == dependents]


class TestLoadWithholdingBrackets:
    """Тесты загрузки таблицы удержания года."""

    @pytest.mark.asyncio
    async def test_load_year(self, store, withholding_rows):
        count = await WithholdingBracketService(store).load_withholding_brackets(YEAR, withholding_rows)

        assert count == 40
        brackets = await store.get_withholding_brackets(YEAR)
        assert sorted({bracket.dependents for bracket in brackets}) == [0, 1, 2, 3]
        assert await store.count_withholding_brackets(YEAR + 1) == 0

    @pytest.mark.asyncio
    async def test_year_loaded_twice_conflict(self, store, withholding_rows, seeded_withholding):
        with pytest.raises(ConflictError):
            await WithholdingBracketService(store).load_withholding_brackets(YEAR, withholding_rows)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("min_pay", ["88501.50", "88502", "88000"])
    async def test_gap_or_overlap_rejected(self, store, withholding_rows, min_pay):
        """Следующая строка начинается ровно с верхней границы предыдущей."""
        rows = [dict(row) for row in withholding_rows]
        rows[1]["min_pay"] = min_pay

        with pytest.raises(ValidationError):
            await WithholdingBracketService(store).load_withholding_brackets(YEAR, rows)

        assert await store.count_withholding_brackets(YEAR) == 0

    @pytest.mark.asyncio
    async def test_zero_dependents_column_required(self, store, withholding_rows):
        rows = [row for row in withholding_rows if row["dependents"] != 0]

        with pytest.raises(ValidationError):
            await WithholdingBracketService(store).load_withholding_brackets(YEAR, rows)

    @pytest.mark.asyncio
    async def test_open_bracket_must_be_last(self, store, withholding_rows):
        rows = [dict(row) for row in withholding_rows]
        rows[3]["max_pay"] = None

        with pytest.raises(ValidationError):
            await WithholdingBracketService(store).load_withholding_brackets(YEAR, rows)

    @pytest.mark.asyncio
    async def test_decreasing_tax_rejected(self, store, withholding_rows):
        rows = [dict(row) for row in withholding_rows]
        rows[5]["tax_amount"] = 0

        with pytest.raises(ValidationError):
            await WithholdingBracketService(store).load_withholding_brackets(YEAR, rows)

    @pytest.mark.asyncio
    async def test_single_column_table(self, store, withholding_rows):
        """Таблица только для 0 иждивенцев допустима."""
        count = await WithholdingBracketService(store).load_withholding_brackets(
            YEAR, column(withholding_rows, 0)
        )

        assert count == 10

    @pytest.mark.asyncio
    async def test_unknown_field_rejected(self, store, withholding_rows):
        rows = [dict(row) for row in withholding_rows]
        rows[0]["rate"] = "0.05"

        with pytest.raises(ValidationError):
            await WithholdingBracketService(store).load_withholding_brackets(YEAR, rows)


class TestSettlementWithLoadedTable:
    """Расчёт периода по загруженной таблице удержания."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("dependents, expected_tax", [
        (0, "500"),
        (1, "100"),
        (2, "0"),
        # своей колонки для 5 иждивенцев нет - берётся колонка 3
        (5, "0"),
    ])
    async def test_tax_taken_from_table(
        self, store, seeded_grades, seeded_withholding, company_setting, dependents, expected_tax
    ):
        await SalaryProfileService(store).upsert_profile(
            103, COMPANY_ID, "100000", date(YEAR, 1, 1), dependents=dependents
        )
        orchestrator = PeriodSettlementOrchestrator(store)
        period = await orchestrator.create_period(COMPANY_ID, YEAR, 3)

        await orchestrator.calculate_period(period.id, operator_id=7)

        (slip,) = await store.list_slips(period.id)
        # начисление 100000 попадает в строку 96500-100500
        assert slip.income_tax == Decimal(expected_tax)
        assert slip.gross_pay - slip.total_deduction == slip.net_pay

    @pytest.mark.asyncio
    async def test_boundary_pay_belongs_to_lower_row(
        self, store, seeded_grades, seeded_withholding, company_setting
    ):
        """Начисление ровно на стыке строк берёт сумму нижней строки."""
        await SalaryProfileService(store).upsert_profile(103, COMPANY_ID, "100500", date(YEAR, 1, 1))
        orchestrator = PeriodSettlementOrchestrator(store)
        period = await orchestrator.create_period(COMPANY_ID, YEAR, 3)

        await orchestrator.calculate_period(period.id, operator_id=7)

        (slip,) = await store.list_slips(period.id)
        assert slip.income_tax == Decimal("500")
