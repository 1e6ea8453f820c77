"""Реализация хранилища движка поверх SQLAlchemy AsyncSession."""

from __future__ import annotations

from datetime import date, datetime
from typing import List, Optional, Sequence, Tuple

from sqlalchemy import select, update, delete, func, exists
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from core.logging.logger import logger
from domain.entities.attendance_record import AttendanceRecord
from domain.entities.employee_salary_profile import EmployeeSalaryProfile
from domain.entities.insurance_grade import InsuranceGrade, InsuranceScheme
from domain.entities.insurance_grade_template import InsuranceGradeTemplate
from domain.entities.payroll_period import PayrollPeriod, PayrollPeriodStatus
from domain.entities.payroll_period_input import PayrollPeriodInput
from domain.entities.payroll_setting import PayrollSetting
from domain.entities.payroll_slip import PayrollSlip
from domain.entities.withholding_tax_bracket import WithholdingTaxBracket
from domain.exceptions import ConflictError
from shared.services.payroll_store.base import PayrollStore


class SqlAlchemyPayrollStore(PayrollStore):
    """Хранилище на AsyncSession. Каждая операция записи - отдельная транзакция (commit/rollback)."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def _commit(self) -> None:
        try:
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

    # === Настройки компании ===

    async def get_setting(self, company_id: int) -> Optional[PayrollSetting]:
        query = select(PayrollSetting).where(PayrollSetting.company_id == company_id)
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def save_setting(self, setting: PayrollSetting) -> PayrollSetting:
        self.session.add(setting)
        try:
            await self._commit()
        except IntegrityError:
            raise ConflictError("Настройка зарплаты компании уже существует", company_id=setting.company_id)
        return setting

    # === Зарплатные профили ===

    async def list_active_salary_profiles(self, company_id: int) -> List[EmployeeSalaryProfile]:
        query = (
            select(EmployeeSalaryProfile)
            .where(
                EmployeeSalaryProfile.company_id == company_id,
                EmployeeSalaryProfile.is_active.is_(True),
            )
            .order_by(EmployeeSalaryProfile.employee_id)
        )
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def list_salary_profiles(
        self, company_id: int, is_active: Optional[bool] = None
    ) -> List[EmployeeSalaryProfile]:
        query = select(EmployeeSalaryProfile).where(EmployeeSalaryProfile.company_id == company_id)
        if is_active is not None:
            query = query.where(EmployeeSalaryProfile.is_active.is_(is_active))
        query = query.order_by(EmployeeSalaryProfile.employee_id, EmployeeSalaryProfile.effective_date)
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def get_active_salary_profile(self, employee_id: int, company_id: int) -> Optional[EmployeeSalaryProfile]:
        query = select(EmployeeSalaryProfile).where(
            EmployeeSalaryProfile.employee_id == employee_id,
            EmployeeSalaryProfile.company_id == company_id,
            EmployeeSalaryProfile.is_active.is_(True),
        )
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def supersede_salary_profile(self, profile: EmployeeSalaryProfile) -> EmployeeSalaryProfile:
        try:
            await self.session.execute(
                update(EmployeeSalaryProfile)
                .where(
                    EmployeeSalaryProfile.employee_id == profile.employee_id,
                    EmployeeSalaryProfile.company_id == profile.company_id,
                    EmployeeSalaryProfile.is_active.is_(True),
                )
                .values(is_active=False, end_date=profile.effective_date)
                .execution_options(synchronize_session="fetch")
            )
            profile.is_active = True
            self.session.add(profile)
            await self.session.commit()
        except IntegrityError:
            await self.session.rollback()
            raise ConflictError(
                "У сотрудника уже есть активный зарплатный профиль",
                employee_id=profile.employee_id,
                company_id=profile.company_id,
            )
        except Exception:
            await self.session.rollback()
            raise
        return profile

    # === Учёт рабочего времени ===

    async def list_attendance(
        self, employee_id: int, company_id: int, start: date, end: date
    ) -> List[AttendanceRecord]:
        query = (
            select(AttendanceRecord)
            .where(
                AttendanceRecord.employee_id == employee_id,
                AttendanceRecord.company_id == company_id,
                AttendanceRecord.date >= start,
                AttendanceRecord.date <= end,
            )
            .order_by(AttendanceRecord.date, AttendanceRecord.id)
        )
        result = await self.session.execute(query)
        return list(result.scalars().all())

    # === Страховые шкалы и таблица удержания ===

    async def get_grades(self, year: int, scheme: Optional[InsuranceScheme] = None) -> List[InsuranceGrade]:
        query = select(InsuranceGrade).where(InsuranceGrade.year == year)
        if scheme is not None:
            query = query.where(InsuranceGrade.scheme == scheme)
        query = query.order_by(InsuranceGrade.scheme, InsuranceGrade.grade_number)
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def get_grade(self, grade_id: int) -> Optional[InsuranceGrade]:
        return await self.session.get(InsuranceGrade, grade_id)

    async def count_grades(self, year: int) -> int:
        query = select(func.count(InsuranceGrade.id)).where(InsuranceGrade.year == year)
        result = await self.session.execute(query)
        return result.scalar_one()

    async def create_grades(self, grades: Sequence[InsuranceGrade]) -> int:
        self.session.add_all(grades)
        try:
            await self._commit()
        except IntegrityError:
            raise ConflictError("Ступени шкалы пересекаются с уже существующими")
        return len(grades)

    async def save_grade(self, grade: InsuranceGrade) -> InsuranceGrade:
        self.session.add(grade)
        await self._commit()
        return grade

    async def get_withholding_brackets(self, year: int) -> List[WithholdingTaxBracket]:
        query = (
            select(WithholdingTaxBracket)
            .where(WithholdingTaxBracket.year == year)
            .order_by(WithholdingTaxBracket.dependents, WithholdingTaxBracket.min_pay)
        )
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def count_withholding_brackets(self, year: int) -> int:
        query = select(func.count(WithholdingTaxBracket.id)).where(WithholdingTaxBracket.year == year)
        result = await self.session.execute(query)
        return result.scalar_one()

    async def create_withholding_brackets(self, brackets: Sequence[WithholdingTaxBracket]) -> int:
        self.session.add_all(brackets)
        try:
            await self._commit()
        except IntegrityError:
            raise ConflictError("Строки таблицы удержания пересекаются с уже существующими")
        return len(brackets)

    # === Периоды ===

    async def get_period(self, period_id: int) -> Optional[PayrollPeriod]:
        # populate_existing: статус мог измениться в другой транзакции
        query = (
            select(PayrollPeriod)
            .where(PayrollPeriod.id == period_id)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def find_period(self, company_id: int, year: int, month: int) -> Optional[PayrollPeriod]:
        query = select(PayrollPeriod).where(
            PayrollPeriod.company_id == company_id,
            PayrollPeriod.year == year,
            PayrollPeriod.month == month,
        ).execution_options(populate_existing=True)
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def create_period(self, period: PayrollPeriod) -> PayrollPeriod:
        self.session.add(period)
        try:
            await self._commit()
        except IntegrityError:
            raise ConflictError(
                f"Период {period.year}-{period.month:02d} уже существует",
                company_id=period.company_id,
                year=period.year,
                month=period.month,
            )
        return period

    async def list_periods(
        self,
        company_id: int,
        year: Optional[int] = None,
        month: Optional[int] = None,
        statuses: Optional[Sequence[PayrollPeriodStatus]] = None,
    ) -> List[PayrollPeriod]:
        query = select(PayrollPeriod).where(PayrollPeriod.company_id == company_id)
        if year is not None:
            query = query.where(PayrollPeriod.year == year)
        if month is not None:
            query = query.where(PayrollPeriod.month == month)
        if statuses:
            query = query.where(PayrollPeriod.status.in_(list(statuses)))
        query = query.order_by(PayrollPeriod.year, PayrollPeriod.month).execution_options(populate_existing=True)
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def has_closed_periods(self, year: int) -> bool:
        query = select(
            exists().where(
                PayrollPeriod.year == year,
                PayrollPeriod.status != PayrollPeriodStatus.DRAFT,
            )
        )
        result = await self.session.execute(query)
        return bool(result.scalar())

    async def update_period_status(
        self,
        period_id: int,
        from_status: PayrollPeriodStatus,
        to_status: PayrollPeriodStatus,
        operator_id: int,
        at: datetime,
    ) -> bool:
        stamp_columns = {
            PayrollPeriodStatus.CALCULATED: ("calculated_at", "calculated_by"),
            PayrollPeriodStatus.APPROVED: ("approved_at", "approved_by"),
            PayrollPeriodStatus.PAID: ("paid_at", "paid_by"),
        }
        at_column, by_column = stamp_columns[to_status]
        try:
            result = await self.session.execute(
                update(PayrollPeriod)
                .where(PayrollPeriod.id == period_id, PayrollPeriod.status == from_status)
                .values({"status": to_status, at_column: at, by_column: operator_id})
                .execution_options(synchronize_session="fetch")
            )
            if result.rowcount != 1:
                await self.session.rollback()
                return False
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise
        return True

    async def replace_slips(
        self,
        period_id: int,
        slips: Sequence[PayrollSlip],
        operator_id: int,
        at: datetime,
    ) -> bool:
        try:
            # Условное обновление первым: конкурирующий расчёт ждёт блокировку строки
            # и после её снятия не находит период в DRAFT
            result = await self.session.execute(
                update(PayrollPeriod)
                .where(
                    PayrollPeriod.id == period_id,
                    PayrollPeriod.status == PayrollPeriodStatus.DRAFT,
                )
                .values(
                    status=PayrollPeriodStatus.CALCULATED,
                    calculated_at=at,
                    calculated_by=operator_id,
                )
                .execution_options(synchronize_session="fetch")
            )
            if result.rowcount != 1:
                await self.session.rollback()
                return False

            deleted = await self.session.execute(
                delete(PayrollSlip)
                .where(PayrollSlip.period_id == period_id)
                .execution_options(synchronize_session="fetch")
            )
            self.session.add_all(slips)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        logger.debug(
            "Набор листков периода заменён",
            period_id=period_id,
            deleted=deleted.rowcount,
            inserted=len(slips),
        )
        return True

    async def list_slips(self, period_id: int) -> List[PayrollSlip]:
        query = (
            select(PayrollSlip)
            .where(PayrollSlip.period_id == period_id)
            .order_by(PayrollSlip.employee_id)
        )
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def get_slip(self, period_id: int, employee_id: int) -> Optional[PayrollSlip]:
        query = select(PayrollSlip).where(
            PayrollSlip.period_id == period_id,
            PayrollSlip.employee_id == employee_id,
        )
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def list_employee_slips(
        self, employee_id: int, company_id: int, year: Optional[int] = None
    ) -> List[Tuple[PayrollSlip, PayrollPeriod]]:
        query = (
            select(PayrollSlip, PayrollPeriod)
            .join(PayrollPeriod, PayrollSlip.period_id == PayrollPeriod.id)
            .where(PayrollSlip.employee_id == employee_id, PayrollSlip.company_id == company_id)
        )
        if year is not None:
            query = query.where(PayrollPeriod.year == year)
        query = query.order_by(PayrollPeriod.year.desc(), PayrollPeriod.month.desc())
        query = query.execution_options(populate_existing=True)
        result = await self.session.execute(query)
        return [(slip, period) for slip, period in result.all()]

    async def list_period_inputs(self, period_id: int) -> List[PayrollPeriodInput]:
        query = (
            select(PayrollPeriodInput)
            .where(PayrollPeriodInput.period_id == period_id)
            .order_by(PayrollPeriodInput.employee_id)
        )
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def get_period_input(self, period_id: int, employee_id: int) -> Optional[PayrollPeriodInput]:
        query = select(PayrollPeriodInput).where(
            PayrollPeriodInput.period_id == period_id,
            PayrollPeriodInput.employee_id == employee_id,
        )
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def save_period_input(self, period_input: PayrollPeriodInput) -> PayrollPeriodInput:
        self.session.add(period_input)
        await self._commit()
        return period_input

    # === Шаблоны шкал ===

    async def create_template(self, template: InsuranceGradeTemplate) -> InsuranceGradeTemplate:
        self.session.add(template)
        await self._commit()
        return template

    async def get_template(self, template_id: int) -> Optional[InsuranceGradeTemplate]:
        query = (
            select(InsuranceGradeTemplate)
            .options(selectinload(InsuranceGradeTemplate.items))
            .where(InsuranceGradeTemplate.id == template_id)
        )
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def list_templates(self) -> List[InsuranceGradeTemplate]:
        query = (
            select(InsuranceGradeTemplate)
            .options(selectinload(InsuranceGradeTemplate.items))
            .order_by(InsuranceGradeTemplate.created_at.desc(), InsuranceGradeTemplate.id.desc())
        )
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def delete_template(self, template: InsuranceGradeTemplate) -> None:
        # Строки удаляются каскадом (items загружены через selectinload в get_template)
        try:
            await self.session.delete(template)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise
