"""Расчёт расчётного листка сотрудника за месяц."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, Optional

from core.config.settings import settings
from core.utils.money import Number, ZERO, round_money, to_decimal
from domain.entities.employee_salary_profile import EmployeeSalaryProfile
from domain.entities.insurance_grade import InsuranceGrade
from domain.entities.payroll_setting import PayrollSetting
from domain.exceptions import ComputationError, ValidationError
from shared.services.overtime_aggregator import OvertimeBuckets
from shared.services.withholding_table import WithholdingTable

MAX_EMPLOYEE_PENSION_RATE = Decimal("0.06")
HOURS_QUANT = Decimal("0.01")


@dataclass(frozen=True)
class ResolvedGrades:
    """Ступени шкал, по которым считаются взносы сотрудника."""

    labor: InsuranceGrade
    health: InsuranceGrade
    pension: InsuranceGrade


@dataclass
class SlipBreakdown:
    """Денежная раскладка одного листка. Все суммы - целые денежные единицы."""

    employee_id: int
    company_id: int

    base_salary: Decimal
    total_allowances: Decimal
    overtime_pay: Decimal
    bonus: Decimal
    other_income: Decimal
    gross_pay: Decimal

    labor_insurance: Decimal
    health_insurance: Decimal
    labor_pension: Decimal
    income_tax: Decimal
    other_deduction: Decimal
    total_deduction: Decimal

    net_pay: Decimal

    employer_labor_insurance: Decimal = ZERO
    employer_health_insurance: Decimal = ZERO
    employer_pension: Decimal = ZERO

    overtime_details: Dict[str, Any] = field(default_factory=dict)


class PayrollCalculator:
    """
    Чистый детерминированный расчёт без обращения к хранилищу.

    Каждое денежное поле округляется до целой единицы (half-up) один раз;
    составные поля (gross, total_deduction, net) складываются из уже
    округлённых полей, поэтому gross_pay - total_deduction == net_pay точно.
    """

    def __init__(self, standard_monthly_hours: Optional[Number] = None):
        hours = to_decimal(
            standard_monthly_hours if standard_monthly_hours is not None else settings.payroll_standard_monthly_hours,
            "standard_monthly_hours",
        )
        if hours <= 0:
            raise ValidationError("Нормативное число часов в месяце должно быть положительным", hours=str(hours))
        self.standard_monthly_hours = hours

    def hourly_rate(self, base_salary: Number) -> Decimal:
        """Часовая ставка: оклад / нормативные часы месяца (без округления)."""
        return to_decimal(base_salary, "base_salary") / self.standard_monthly_hours

    def calculate(
        self,
        setting: PayrollSetting,
        profile: EmployeeSalaryProfile,
        resolved_grades: ResolvedGrades,
        overtime: OvertimeBuckets,
        bonus: Number = ZERO,
        other_income: Number = ZERO,
        other_deduction: Number = ZERO,
        withholding_table: Optional[WithholdingTable] = None,
    ) -> SlipBreakdown:
        base_salary = to_decimal(profile.base_salary, "base_salary")
        bonus = to_decimal(bonus, "bonus")
        other_income = to_decimal(other_income, "other_income")
        other_deduction = to_decimal(other_deduction, "other_deduction")
        dependents = profile.dependents or 0
        pension_rate = to_decimal(profile.employee_pension_rate, "employee_pension_rate")

        self._validate_inputs(base_salary, bonus, other_income, other_deduction, dependents, pension_rate)

        # Начисления
        total_allowances = round_money(
            sum((to_decimal(item.get("amount"), "allowance") for item in (profile.allowances or [])), ZERO)
        )

        hourly_rate = self.hourly_rate(base_salary)
        tier1_pay = overtime.tier1_hours * hourly_rate * to_decimal(setting.overtime_rate_1)
        tier2_pay = overtime.tier2_hours * hourly_rate * to_decimal(setting.overtime_rate_2)
        holiday_pay = overtime.holiday_hours * hourly_rate * to_decimal(setting.overtime_rate_holiday)
        overtime_pay = round_money(tier1_pay + tier2_pay + holiday_pay)

        base_salary = round_money(base_salary)
        bonus = round_money(bonus)
        other_income = round_money(other_income)
        gross_pay = base_salary + total_allowances + overtime_pay + bonus + other_income

        # Удержания
        labor_insured = to_decimal(resolved_grades.labor.insured_amount)
        health_insured = to_decimal(resolved_grades.health.insured_amount)
        pension_insured = to_decimal(resolved_grades.pension.insured_amount)

        labor_insurance = round_money(
            labor_insured
            * to_decimal(setting.labor_insurance_rate)
            * to_decimal(setting.labor_insurance_emp_share)
        )

        covered_dependents = dependents
        if setting.health_insurance_max_dependents is not None:
            covered_dependents = min(dependents, setting.health_insurance_max_dependents)
        health_insurance = round_money(
            health_insured
            * to_decimal(setting.health_insurance_rate)
            * to_decimal(setting.health_insurance_emp_share)
            * (1 + covered_dependents)
        )

        # Только добровольная часть сотрудника; обязательные 6% работодателя не удерживаются
        labor_pension = round_money(pension_insured * pension_rate)

        income_tax = ZERO
        if gross_pay > to_decimal(setting.withholding_threshold):
            if withholding_table is None:
                raise ComputationError(
                    "Начисление выше порога удержания, но таблица удержания не задана",
                    employee_id=profile.employee_id,
                    gross_pay=str(gross_pay),
                )
            income_tax = round_money(
                withholding_table.lookup(gross_pay, dependents, labor_insurance + health_insurance + labor_pension)
            )

        other_deduction = round_money(other_deduction)
        total_deduction = labor_insurance + health_insurance + labor_pension + income_tax + other_deduction

        # Отрицательный результат не обрезаем
        net_pay = gross_pay - total_deduction

        # Расходы работодателя
        employer_labor_insurance = round_money(
            labor_insured
            * to_decimal(setting.labor_insurance_rate)
            * to_decimal(setting.labor_insurance_employer_share)
        )
        employer_health_insurance = round_money(
            health_insured
            * to_decimal(setting.health_insurance_rate)
            * to_decimal(setting.health_insurance_employer_share)
            * (1 + to_decimal(setting.health_insurance_avg_dependents))
        )
        employer_pension = round_money(pension_insured * to_decimal(setting.labor_pension_rate))

        return SlipBreakdown(
            employee_id=profile.employee_id,
            company_id=profile.company_id,
            base_salary=base_salary,
            total_allowances=total_allowances,
            overtime_pay=overtime_pay,
            bonus=bonus,
            other_income=other_income,
            gross_pay=gross_pay,
            labor_insurance=labor_insurance,
            health_insurance=health_insurance,
            labor_pension=labor_pension,
            income_tax=income_tax,
            other_deduction=other_deduction,
            total_deduction=total_deduction,
            net_pay=net_pay,
            employer_labor_insurance=employer_labor_insurance,
            employer_health_insurance=employer_health_insurance,
            employer_pension=employer_pension,
            overtime_details={
                "hourly_rate": str(hourly_rate.quantize(HOURS_QUANT)),
                "tier1_hours": str(overtime.tier1_hours.quantize(HOURS_QUANT)),
                "tier2_hours": str(overtime.tier2_hours.quantize(HOURS_QUANT)),
                "holiday_hours": str(overtime.holiday_hours.quantize(HOURS_QUANT)),
                "tier1_pay": str(round_money(tier1_pay)),
                "tier2_pay": str(round_money(tier2_pay)),
                "holiday_pay": str(round_money(holiday_pay)),
            },
        )

    @staticmethod
    def _validate_inputs(
        base_salary: Decimal,
        bonus: Decimal,
        other_income: Decimal,
        other_deduction: Decimal,
        dependents: int,
        pension_rate: Decimal,
    ) -> None:
        if base_salary < 0:
            raise ValidationError("Оклад не может быть отрицательным", base_salary=str(base_salary))
        for name, value in (("bonus", bonus), ("other_income", other_income), ("other_deduction", other_deduction)):
            if value < 0:
                raise ValidationError(f"Поле {name} не может быть отрицательным", field=name, value=str(value))
        if dependents < 0:
            raise ValidationError("Число иждивенцев не может быть отрицательным", dependents=dependents)
        if not ZERO <= pension_rate <= MAX_EMPLOYEE_PENSION_RATE:
            raise ValidationError(
                "Ставка добровольных пенсионных отчислений должна быть в диапазоне 0..6%",
                employee_pension_rate=str(pension_rate),
            )
