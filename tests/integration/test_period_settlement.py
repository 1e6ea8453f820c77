"""
Интеграционные тесты расчёта периода и жизненного цикла статусов
"""
import pytest
import pytest_asyncio
from datetime import date, datetime, timezone
from decimal import Decimal

from domain.entities.payroll_period import PayrollPeriodStatus
from domain.exceptions import (
    ComputationError,
    ConflictError,
    NotFoundError,
    PreconditionError,
    ValidationError,
)
from shared.services.payroll_store import SqlAlchemyPayrollStore
from shared.services.period_settlement_orchestrator import PeriodSettlementOrchestrator, month_bounds
from shared.services.salary_profile_service import SalaryProfileService
from tests.utils.payroll_helpers import COMPANY_ID, YEAR, add_attendance, force_period_status

FIXED_NOW = datetime(2026, 4, 1, 9, 0, tzinfo=timezone.utc)
OPERATOR_ID = 7


def slip_values(slips):
    """Денежные поля листков для сравнения двух прогонов."""
    fields = (
        "employee_id", "base_salary", "allowances", "overtime_pay", "bonus", "other_income", "gross_pay",
        "labor_insurance", "health_insurance", "labor_pension", "income_tax", "other_deduction",
        "total_deduction", "net_pay", "employer_labor_insurance", "employer_health_insurance",
        "employer_pension", "overtime_details",
    )
    return [tuple(getattr(slip, name) for name in fields) for slip in slips]


@pytest.fixture
def orchestrator(store):
    return PeriodSettlementOrchestrator(store, clock=lambda: FIXED_NOW)


@pytest_asyncio.fixture
async def two_employees(store):
    """Два активных профиля компании."""
    service = SalaryProfileService(store)
    await service.upsert_profile(101, COMPANY_ID, "36000", date(YEAR, 1, 1),
                                 allowances=[{"name": "Питание", "amount": "2000"}], dependents=1)
    await service.upsert_profile(102, COMPANY_ID, "52000", date(YEAR, 1, 1), employee_pension_rate="0.06")


class TestCreatePeriod:

    @pytest.mark.asyncio
    async def test_create_draft(self, orchestrator):
        period = await orchestrator.create_period(COMPANY_ID, YEAR, 3)

        assert period.id is not None
        assert period.status == PayrollPeriodStatus.DRAFT

    @pytest.mark.asyncio
    async def test_duplicate_rejected(self, orchestrator):
        await orchestrator.create_period(COMPANY_ID, YEAR, 3)

        with pytest.raises(ConflictError):
            await orchestrator.create_period(COMPANY_ID, YEAR, 3)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("month", [0, 13])
    async def test_month_out_of_range(self, orchestrator, month):
        with pytest.raises(ValidationError):
            await orchestrator.create_period(COMPANY_ID, YEAR, month)

    def test_month_bounds(self):
        assert month_bounds(2026, 2) == (date(2026, 2, 1), date(2026, 2, 28))


class TestCalculatePeriod:
    """Тесты пакетного расчёта."""

    @pytest.mark.asyncio
    async def test_calculates_all_active_employees(
        self, store, db_session, orchestrator, seeded_grades, company_setting, two_employees
    ):
        period = await orchestrator.create_period(COMPANY_ID, YEAR, 3)
        await add_attendance(db_session, 101, date(YEAR, 3, 2), 180)
        await add_attendance(db_session, 101, date(YEAR, 4, 1), 600)  # другой месяц
        await orchestrator.set_employee_input(period.id, 102, bonus="5000")

        result = await orchestrator.calculate_period(period.id, OPERATOR_ID)

        assert result == {"slip_count": 2}
        period = await store.get_period(period.id)
        assert period.status == PayrollPeriodStatus.CALCULATED
        assert period.calculated_by == OPERATOR_ID
        assert period.calculated_at is not None

        slips = await store.list_slips(period.id)
        assert [slip.employee_id for slip in slips] == [101, 102]
        first, second = slips

        # 36000 / 240 = 150 в час; 2 ч x 1.34 + 1 ч x 1.67
        assert first.overtime_pay == Decimal("653")
        assert first.gross_pay == Decimal("38653")
        # оклад + надбавки = 38000 -> ступень 6 (страховая база 38200)
        assert first.labor_insurance == Decimal("955")
        assert second.bonus == Decimal("5000")
        # 52000 выше всех ступеней: пенсионная база 150000 x 6%
        assert second.labor_pension == Decimal("9000")
        for slip in slips:
            assert slip.gross_pay - slip.total_deduction == slip.net_pay

    @pytest.mark.asyncio
    async def test_fractional_salary_uses_adjacent_grade(
        self, store, orchestrator, seeded_grades, company_setting
    ):
        """Оклад 29500.50 попадает во 2-ю ступень (31800), а не в верхнюю."""
        await SalaryProfileService(store).upsert_profile(104, COMPANY_ID, "29500.50", date(YEAR, 1, 1))
        period = await orchestrator.create_period(COMPANY_ID, YEAR, 3)

        await orchestrator.calculate_period(period.id, OPERATOR_ID)

        (slip,) = await store.list_slips(period.id)
        # 31800 x 0.125 x 0.2
        assert slip.labor_insurance == Decimal("795")

    @pytest.mark.asyncio
    async def test_missing_setting_not_found(self, store, orchestrator, seeded_grades, two_employees):
        """Без настройки компании - NotFoundError, листки не записаны."""
        period = await orchestrator.create_period(COMPANY_ID, YEAR, 3)

        with pytest.raises(NotFoundError):
            await orchestrator.calculate_period(period.id, OPERATOR_ID)

        assert await store.list_slips(period.id) == []
        assert (await store.get_period(period.id)).status == PayrollPeriodStatus.DRAFT

    @pytest.mark.asyncio
    async def test_missing_period_not_found(self, orchestrator):
        with pytest.raises(NotFoundError):
            await orchestrator.calculate_period(999, OPERATOR_ID)

    @pytest.mark.asyncio
    async def test_no_active_profiles_not_found(self, orchestrator, seeded_grades, company_setting):
        period = await orchestrator.create_period(COMPANY_ID, YEAR, 3)

        with pytest.raises(NotFoundError):
            await orchestrator.calculate_period(period.id, OPERATOR_ID)

    @pytest.mark.asyncio
    async def test_missing_grade_table_aborts(self, store, orchestrator, company_setting, two_employees):
        """Нет шкал года - ошибка целостности, ничего не записано."""
        period = await orchestrator.create_period(COMPANY_ID, YEAR, 3)

        with pytest.raises(ComputationError):
            await orchestrator.calculate_period(period.id, OPERATOR_ID)

        assert await store.list_slips(period.id) == []

    @pytest.mark.asyncio
    async def test_one_failing_employee_aborts_batch(
        self, store, orchestrator, seeded_grades, company_setting, two_employees
    ):
        """Ошибка по одному сотруднику отменяет расчёт целиком."""
        await SalaryProfileService(store).upsert_profile(103, COMPANY_ID, "40000", date(YEAR, 1, 1), labor_grade=99)
        period = await orchestrator.create_period(COMPANY_ID, YEAR, 3)

        with pytest.raises(ComputationError):
            await orchestrator.calculate_period(period.id, OPERATOR_ID)

        assert await store.list_slips(period.id) == []
        assert (await store.get_period(period.id)).status == PayrollPeriodStatus.DRAFT

    @pytest.mark.asyncio
    async def test_recalculation_is_idempotent(
        self, store, db_session, orchestrator, seeded_grades, company_setting, two_employees
    ):
        """Повторный расчёт тех же данных даёт тот же набор листков без дублей."""
        period = await orchestrator.create_period(COMPANY_ID, YEAR, 3)
        await add_attendance(db_session, 102, date(YEAR, 3, 10), 75)

        await orchestrator.calculate_period(period.id, OPERATOR_ID)
        first_run = slip_values(await store.list_slips(period.id))

        await force_period_status(db_session, period.id, PayrollPeriodStatus.DRAFT)
        result = await orchestrator.calculate_period(period.id, OPERATOR_ID)
        second_run = slip_values(await store.list_slips(period.id))

        assert result == {"slip_count": 2}
        assert first_run == second_run

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [
        PayrollPeriodStatus.CALCULATED,
        PayrollPeriodStatus.APPROVED,
        PayrollPeriodStatus.PAID,
    ])
    async def test_non_draft_rejected(self, store, db_session, orchestrator, status):
        period = await orchestrator.create_period(COMPANY_ID, YEAR, 3)
        await force_period_status(db_session, period.id, status)

        with pytest.raises(PreconditionError) as exc_info:
            await orchestrator.calculate_period(period.id, OPERATOR_ID)

        assert exc_info.value.required_status == "DRAFT"
        assert exc_info.value.actual_status == status.value


class RacingStore(SqlAlchemyPayrollStore):
    """Хранилище, которое посреди расчёта запускает конкурирующий расчёт в другой сессии."""

    def __init__(self, session, competitor):
        super().__init__(session)
        self.competitor = competitor
        self.competitor_result = None

    async def list_active_salary_profiles(self, company_id):
        profiles = await super().list_active_salary_profiles(company_id)
        if self.competitor is not None:
            competitor, self.competitor = self.competitor, None
            self.competitor_result = await competitor()
        return profiles


class TestConcurrentCalculation:

    @pytest.mark.asyncio
    async def test_only_one_of_two_racing_calls_wins(
        self, store, session_factory, seeded_grades, company_setting, two_employees
    ):
        """Оба вызова прошли проверку DRAFT; записывает только первый завершившийся."""
        period = await PeriodSettlementOrchestrator(store).create_period(COMPANY_ID, YEAR, 3)

        async with session_factory() as other_session, session_factory() as racing_session:
            async def competitor():
                winner = PeriodSettlementOrchestrator(SqlAlchemyPayrollStore(other_session), clock=lambda: FIXED_NOW)
                return await winner.calculate_period(period.id, operator_id=1)

            racing_store = RacingStore(racing_session, competitor)
            loser = PeriodSettlementOrchestrator(racing_store, clock=lambda: FIXED_NOW)

            with pytest.raises(PreconditionError) as exc_info:
                await loser.calculate_period(period.id, operator_id=2)

        assert racing_store.competitor_result == {"slip_count": 2}
        assert exc_info.value.actual_status == "CALCULATED"

        period = await store.get_period(period.id)
        assert period.status == PayrollPeriodStatus.CALCULATED
        assert period.calculated_by == 1
        assert len(await store.list_slips(period.id)) == 2


class TestStatusTransitions:

    @pytest.mark.asyncio
    async def test_full_lifecycle(self, store, orchestrator, seeded_grades, company_setting, two_employees):
        period = await orchestrator.create_period(COMPANY_ID, YEAR, 3)
        await orchestrator.calculate_period(period.id, OPERATOR_ID)

        approved = await orchestrator.approve(period.id, operator_id=8)
        assert approved.status == PayrollPeriodStatus.APPROVED
        assert approved.approved_by == 8

        paid = await orchestrator.mark_paid(period.id, operator_id=9)
        assert paid.status == PayrollPeriodStatus.PAID
        assert paid.paid_by == 9
        assert paid.paid_at is not None

    @pytest.mark.asyncio
    async def test_approve_draft_rejected(self, orchestrator):
        period = await orchestrator.create_period(COMPANY_ID, YEAR, 3)

        with pytest.raises(PreconditionError) as exc_info:
            await orchestrator.approve(period.id, OPERATOR_ID)

        assert exc_info.value.required_status == "CALCULATED"

    @pytest.mark.asyncio
    async def test_mark_paid_requires_approved(
        self, orchestrator, seeded_grades, company_setting, two_employees
    ):
        period = await orchestrator.create_period(COMPANY_ID, YEAR, 3)
        await orchestrator.calculate_period(period.id, OPERATOR_ID)

        with pytest.raises(PreconditionError) as exc_info:
            await orchestrator.mark_paid(period.id, OPERATOR_ID)

        assert exc_info.value.required_status == "APPROVED"

    @pytest.mark.asyncio
    async def test_inputs_locked_after_calculation(
        self, orchestrator, seeded_grades, company_setting, two_employees
    ):
        period = await orchestrator.create_period(COMPANY_ID, YEAR, 3)
        await orchestrator.calculate_period(period.id, OPERATOR_ID)

        with pytest.raises(PreconditionError):
            await orchestrator.set_employee_input(period.id, 101, bonus="100")

    @pytest.mark.asyncio
    async def test_negative_input_rejected(self, orchestrator):
        period = await orchestrator.create_period(COMPANY_ID, YEAR, 3)

        with pytest.raises(ValidationError):
            await orchestrator.set_employee_input(period.id, 101, other_deduction="-1")


class TestPeriodQueries:
    """Чтение периодов и листков."""

    @pytest.mark.asyncio
    async def test_get_period(self, orchestrator):
        created = await orchestrator.create_period(COMPANY_ID, YEAR, 3)

        period = await orchestrator.get_period(created.id)

        assert (period.year, period.month) == (YEAR, 3)
        with pytest.raises(NotFoundError):
            await orchestrator.get_period(999)

    @pytest.mark.asyncio
    async def test_list_periods_filtered(self, db_session, orchestrator):
        march = await orchestrator.create_period(COMPANY_ID, YEAR, 3)
        await orchestrator.create_period(COMPANY_ID, YEAR, 1)
        await orchestrator.create_period(COMPANY_ID, YEAR + 1, 1)
        await orchestrator.create_period(COMPANY_ID + 1, YEAR, 2)
        await force_period_status(db_session, march.id, PayrollPeriodStatus.APPROVED)

        all_periods = await orchestrator.list_periods(COMPANY_ID)
        this_year = await orchestrator.list_periods(COMPANY_ID, year=YEAR)
        approved = await orchestrator.list_periods(COMPANY_ID, status="APPROVED")

        assert [(p.year, p.month) for p in all_periods] == [(YEAR, 1), (YEAR, 3), (YEAR + 1, 1)]
        assert [p.month for p in this_year] == [1, 3]
        assert [p.id for p in approved] == [march.id]

    @pytest.mark.asyncio
    async def test_list_periods_unknown_status(self, orchestrator):
        with pytest.raises(ValidationError):
            await orchestrator.list_periods(COMPANY_ID, status="CLOSED")

    @pytest.mark.asyncio
    async def test_slips_of_calculated_period(
        self, orchestrator, seeded_grades, company_setting, two_employees
    ):
        period = await orchestrator.create_period(COMPANY_ID, YEAR, 3)
        await orchestrator.calculate_period(period.id, OPERATOR_ID)

        slips = await orchestrator.list_slips(period.id)
        slip = await orchestrator.get_slip(period.id, 102)

        assert [s.employee_id for s in slips] == [101, 102]
        assert slip.base_salary == Decimal("52000")
        with pytest.raises(NotFoundError):
            await orchestrator.get_slip(period.id, 555)

    @pytest.mark.asyncio
    async def test_draft_period_has_no_slips(self, orchestrator):
        period = await orchestrator.create_period(COMPANY_ID, YEAR, 3)

        assert await orchestrator.list_slips(period.id) == []
        with pytest.raises(NotFoundError):
            await orchestrator.list_slips(999)
