"""Расчёт зарплаты за период и жизненный цикл периода."""

from __future__ import annotations

import calendar
from datetime import date, datetime, timezone
from typing import Callable, Dict, List, Optional, Tuple, Union

from core.logging.logger import logger
from core.utils.money import Number, ZERO, to_decimal
from domain.entities.employee_salary_profile import EmployeeSalaryProfile
from domain.entities.insurance_grade import InsuranceScheme
from domain.entities.payroll_period import PayrollPeriod, PayrollPeriodStatus
from domain.entities.payroll_period_input import PayrollPeriodInput
from domain.entities.payroll_slip import PayrollSlip
from domain.exceptions import ConflictError, NotFoundError, PayrollError, PreconditionError, ValidationError
from shared.services.insurance_grade_resolver import GradeTable
from shared.services.overtime_aggregator import OvertimeAggregator
from shared.services.payroll_calculator import PayrollCalculator, ResolvedGrades, SlipBreakdown
from shared.services.payroll_store.base import PayrollStore
from shared.services.withholding_table import get_withholding_table


def month_bounds(year: int, month: int) -> Tuple[date, date]:
    """Первый и последний день календарного месяца."""
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PeriodSettlementOrchestrator:
    """
    Пакетный расчёт листков по всем активным профилям компании за период
    и переходы статусов DRAFT -> CALCULATED -> APPROVED -> PAID.

    Обратных переходов нет. Расчёт - одна единица работы: ошибка по любому
    сотруднику отменяет всё, ничего не записывается.
    """

    def __init__(
        self,
        store: PayrollStore,
        calculator: Optional[PayrollCalculator] = None,
        aggregator: Optional[OvertimeAggregator] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.store = store
        self.calculator = calculator or PayrollCalculator()
        self.aggregator = aggregator or OvertimeAggregator()
        self.clock = clock or _utcnow

    async def create_period(self, company_id: int, year: int, month: int) -> PayrollPeriod:
        """Создать период в статусе DRAFT."""
        if not 1 <= month <= 12:
            raise ValidationError("Месяц должен быть в диапазоне 1..12", month=month)
        if not 1 <= year <= 9999:
            raise ValidationError("Некорректный год", year=year)

        existing = await self.store.find_period(company_id, year, month)
        if existing:
            raise ConflictError(
                f"Период {year}-{month:02d} уже существует",
                company_id=company_id,
                year=year,
                month=month,
            )

        period = await self.store.create_period(
            PayrollPeriod(company_id=company_id, year=year, month=month, status=PayrollPeriodStatus.DRAFT)
        )
        logger.info("Период создан", period_id=period.id, company_id=company_id, year=year, month=month)
        return period

    async def set_employee_input(
        self,
        period_id: int,
        employee_id: int,
        bonus: Number = ZERO,
        other_income: Number = ZERO,
        other_deduction: Number = ZERO,
        note: Optional[str] = None,
    ) -> PayrollPeriodInput:
        """Задать премию / прочий доход / прочее удержание сотрудника (только в DRAFT)."""
        period = await self._get_period(period_id)
        self._require_status(period, PayrollPeriodStatus.DRAFT, "Разовые суммы можно менять только в периоде DRAFT")

        amounts = {
            "bonus": to_decimal(bonus, "bonus"),
            "other_income": to_decimal(other_income, "other_income"),
            "other_deduction": to_decimal(other_deduction, "other_deduction"),
        }
        for name, value in amounts.items():
            if value < 0:
                raise ValidationError(f"Поле {name} не может быть отрицательным", field=name, value=str(value))

        period_input = await self.store.get_period_input(period_id, employee_id)
        if period_input is None:
            period_input = PayrollPeriodInput(period_id=period_id, employee_id=employee_id)
        period_input.bonus = amounts["bonus"]
        period_input.other_income = amounts["other_income"]
        period_input.other_deduction = amounts["other_deduction"]
        period_input.note = note
        return await self.store.save_period_input(period_input)

    async def calculate_period(self, period_id: int, operator_id: int) -> Dict[str, int]:
        """
        Рассчитать листки всех активных сотрудников компании и перевести период в CALCULATED.

        Настройка, шкалы и таблица удержания читаются один раз на весь прогон.
        Запись - одна атомарная операция хранилища, условная по статусу DRAFT:
        из двух конкурирующих вызовов записывает только один, второй получает PreconditionError.

        Returns:
            dict: {"slip_count": int}
        """
        period = await self._get_period(period_id)
        self._require_status(period, PayrollPeriodStatus.DRAFT, "Рассчитать можно только период в статусе DRAFT")
        company_id, year, month = period.company_id, period.year, period.month

        setting = await self.store.get_setting(company_id)
        if setting is None:
            raise NotFoundError("Не задана настройка зарплаты компании", company_id=company_id)

        profiles = await self.store.list_active_salary_profiles(company_id)
        if not profiles:
            raise NotFoundError("Нет активных зарплатных профилей компании", company_id=company_id)

        grade_table = GradeTable(year, await self.store.get_grades(year))
        withholding_table = get_withholding_table(
            await self.store.get_withholding_brackets(year), setting.withholding_threshold, year
        )
        inputs = {item.employee_id: item for item in await self.store.list_period_inputs(period_id)}
        start, end = month_bounds(year, month)

        slips = []
        for profile in profiles:
            try:
                records = await self.store.list_attendance(profile.employee_id, company_id, start, end)
                overtime = self.aggregator.aggregate(records)
                period_input = inputs.get(profile.employee_id)

                if to_decimal(profile.base_salary) < to_decimal(setting.minimum_wage):
                    logger.warning(
                        "Оклад ниже минимальной заработной платы",
                        period_id=period_id,
                        employee_id=profile.employee_id,
                        base_salary=str(profile.base_salary),
                        minimum_wage=str(setting.minimum_wage),
                    )

                breakdown = self.calculator.calculate(
                    setting,
                    profile,
                    self._resolve_grades(grade_table, profile),
                    overtime,
                    bonus=period_input.bonus if period_input else ZERO,
                    other_income=period_input.other_income if period_input else ZERO,
                    other_deduction=period_input.other_deduction if period_input else ZERO,
                    withholding_table=withholding_table,
                )
            except PayrollError as e:
                logger.error(
                    "Расчёт периода прерван: ошибка по сотруднику",
                    period_id=period_id,
                    employee_id=profile.employee_id,
                    error=str(e),
                )
                raise

            if breakdown.net_pay < 0:
                logger.warning(
                    "Удержания превышают начисления, сумма к выплате отрицательная",
                    period_id=period_id,
                    employee_id=profile.employee_id,
                    net_pay=str(breakdown.net_pay),
                )
            slips.append(self._build_slip(period_id, breakdown))

        replaced = await self.store.replace_slips(period_id, slips, operator_id, self.clock())
        if not replaced:
            current = await self.store.get_period(period_id)
            raise PreconditionError(
                "Период уже рассчитан другим запросом",
                required_status=PayrollPeriodStatus.DRAFT.value,
                actual_status=current.status.value if current else None,
                period_id=period_id,
            )

        logger.info(
            "Период рассчитан",
            period_id=period_id,
            company_id=company_id,
            operator_id=operator_id,
            slip_count=len(slips),
        )
        return {"slip_count": len(slips)}

    async def approve(self, period_id: int, operator_id: int) -> PayrollPeriod:
        """CALCULATED -> APPROVED."""
        return await self._transition(
            period_id, PayrollPeriodStatus.CALCULATED, PayrollPeriodStatus.APPROVED, operator_id
        )

    async def mark_paid(self, period_id: int, operator_id: int) -> PayrollPeriod:
        """APPROVED -> PAID."""
        return await self._transition(
            period_id, PayrollPeriodStatus.APPROVED, PayrollPeriodStatus.PAID, operator_id
        )

    async def get_period(self, period_id: int) -> PayrollPeriod:
        return await self._get_period(period_id)

    async def list_periods(
        self,
        company_id: int,
        year: Optional[int] = None,
        status: Optional[Union[PayrollPeriodStatus, str]] = None,
    ) -> List[PayrollPeriod]:
        """Периоды компании по возрастанию (год, месяц), с фильтром по году и статусу."""
        statuses = None
        if status is not None:
            try:
                statuses = [PayrollPeriodStatus(status)]
            except ValueError:
                raise ValidationError("Неизвестный статус периода", status=str(status))
        return await self.store.list_periods(company_id, year=year, statuses=statuses)

    async def list_slips(self, period_id: int) -> List[PayrollSlip]:
        """Листки периода по возрастанию employee_id."""
        await self._get_period(period_id)
        return await self.store.list_slips(period_id)

    async def get_slip(self, period_id: int, employee_id: int) -> PayrollSlip:
        await self._get_period(period_id)
        slip = await self.store.get_slip(period_id, employee_id)
        if slip is None:
            raise NotFoundError("Листок не найден", period_id=period_id, employee_id=employee_id)
        return slip

    async def _transition(
        self,
        period_id: int,
        from_status: PayrollPeriodStatus,
        to_status: PayrollPeriodStatus,
        operator_id: int,
    ) -> PayrollPeriod:
        message = f"Перевести в {to_status.value} можно только период в статусе {from_status.value}"
        period = await self._get_period(period_id)
        self._require_status(period, from_status, message)

        updated = await self.store.update_period_status(period_id, from_status, to_status, operator_id, self.clock())
        period = await self.store.get_period(period_id)
        if not updated:
            raise PreconditionError(
                message,
                required_status=from_status.value,
                actual_status=period.status.value,
                period_id=period_id,
            )

        logger.info(
            "Статус периода изменён",
            period_id=period_id,
            from_status=from_status.value,
            to_status=to_status.value,
            operator_id=operator_id,
        )
        return period

    async def _get_period(self, period_id: int) -> PayrollPeriod:
        period = await self.store.get_period(period_id)
        if period is None:
            raise NotFoundError("Период не найден", period_id=period_id)
        return period

    @staticmethod
    def _require_status(period: PayrollPeriod, required: PayrollPeriodStatus, message: str) -> None:
        if period.status != required:
            raise PreconditionError(
                message,
                required_status=required.value,
                actual_status=period.status.value,
                period_id=period.id,
            )

    @staticmethod
    def _resolve_grades(grade_table: GradeTable, profile: EmployeeSalaryProfile) -> ResolvedGrades:
        """Ступени по номерам из профиля; не назначенные - по страхуемой зарплате (оклад + надбавки)."""
        insured_salary = to_decimal(profile.base_salary) + sum(
            (to_decimal(item.get("amount"), "allowance") for item in (profile.allowances or [])), ZERO
        )

        def pick(scheme: InsuranceScheme, grade_number: Optional[int]):
            if grade_number is not None:
                return grade_table.by_number(scheme, grade_number)
            return grade_table.resolve(scheme, insured_salary)

        return ResolvedGrades(
            labor=pick(InsuranceScheme.LABOR, profile.labor_grade),
            health=pick(InsuranceScheme.HEALTH, profile.health_grade),
            pension=pick(InsuranceScheme.PENSION, profile.pension_grade),
        )

    @staticmethod
    def _build_slip(period_id: int, breakdown: SlipBreakdown) -> PayrollSlip:
        return PayrollSlip(
            period_id=period_id,
            employee_id=breakdown.employee_id,
            company_id=breakdown.company_id,
            base_salary=breakdown.base_salary,
            allowances=breakdown.total_allowances,
            overtime_pay=breakdown.overtime_pay,
            bonus=breakdown.bonus,
            other_income=breakdown.other_income,
            gross_pay=breakdown.gross_pay,
            labor_insurance=breakdown.labor_insurance,
            health_insurance=breakdown.health_insurance,
            labor_pension=breakdown.labor_pension,
            income_tax=breakdown.income_tax,
            other_deduction=breakdown.other_deduction,
            total_deduction=breakdown.total_deduction,
            net_pay=breakdown.net_pay,
            employer_labor_insurance=breakdown.employer_labor_insurance,
            employer_health_insurance=breakdown.employer_health_insurance,
            employer_pension=breakdown.employer_pension,
            overtime_details=breakdown.overtime_details,
        )
