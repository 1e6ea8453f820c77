"""Интерфейс хранилища, на которое опирается движок расчёта зарплаты."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date, datetime
from typing import List, Optional, Sequence, Tuple

from domain.entities.attendance_record import AttendanceRecord
from domain.entities.employee_salary_profile import EmployeeSalaryProfile
from domain.entities.insurance_grade import InsuranceGrade, InsuranceScheme
from domain.entities.insurance_grade_template import InsuranceGradeTemplate
from domain.entities.payroll_period import PayrollPeriod, PayrollPeriodStatus
from domain.entities.payroll_period_input import PayrollPeriodInput
from domain.entities.payroll_setting import PayrollSetting
from domain.entities.payroll_slip import PayrollSlip
from domain.entities.withholding_tax_bracket import WithholdingTaxBracket


class PayrollStore(ABC):
    """
    Абстрактные операции чтения/записи.

    Операции записи атомарны: либо применяются целиком, либо не применяются вовсе.
    """

    # === Настройки компании ===

    @abstractmethod
    async def get_setting(self, company_id: int) -> Optional[PayrollSetting]:
        ...

    @abstractmethod
    async def save_setting(self, setting: PayrollSetting) -> PayrollSetting:
        ...

    # === Зарплатные профили ===

    @abstractmethod
    async def list_active_salary_profiles(self, company_id: int) -> List[EmployeeSalaryProfile]:
        """Активные профили компании, упорядоченные по employee_id."""
        ...

    @abstractmethod
    async def list_salary_profiles(
        self, company_id: int, is_active: Optional[bool] = None
    ) -> List[EmployeeSalaryProfile]:
        ...

    @abstractmethod
    async def get_active_salary_profile(self, employee_id: int, company_id: int) -> Optional[EmployeeSalaryProfile]:
        ...

    @abstractmethod
    async def supersede_salary_profile(self, profile: EmployeeSalaryProfile) -> EmployeeSalaryProfile:
        """Закрыть действующий профиль (end_date = profile.effective_date) и сохранить новый."""
        ...

    # === Учёт рабочего времени ===

    @abstractmethod
    async def list_attendance(
        self, employee_id: int, company_id: int, start: date, end: date
    ) -> List[AttendanceRecord]:
        """Записи за [start, end] включительно."""
        ...

    # === Страховые шкалы и таблица удержания ===

    @abstractmethod
    async def get_grades(self, year: int, scheme: Optional[InsuranceScheme] = None) -> List[InsuranceGrade]:
        ...

    @abstractmethod
    async def get_grade(self, grade_id: int) -> Optional[InsuranceGrade]:
        ...

    @abstractmethod
    async def count_grades(self, year: int) -> int:
        ...

    @abstractmethod
    async def create_grades(self, grades: Sequence[InsuranceGrade]) -> int:
        ...

    @abstractmethod
    async def save_grade(self, grade: InsuranceGrade) -> InsuranceGrade:
        ...

    @abstractmethod
    async def get_withholding_brackets(self, year: int) -> List[WithholdingTaxBracket]:
        ...

    @abstractmethod
    async def count_withholding_brackets(self, year: int) -> int:
        ...

    @abstractmethod
    async def create_withholding_brackets(self, brackets: Sequence[WithholdingTaxBracket]) -> int:
        ...

    # === Периоды ===

    @abstractmethod
    async def get_period(self, period_id: int) -> Optional[PayrollPeriod]:
        ...

    @abstractmethod
    async def find_period(self, company_id: int, year: int, month: int) -> Optional[PayrollPeriod]:
        ...

    @abstractmethod
    async def create_period(self, period: PayrollPeriod) -> PayrollPeriod:
        """Создать период. Дубликат (company_id, year, month) -> ConflictError."""
        ...

    @abstractmethod
    async def list_periods(
        self,
        company_id: int,
        year: Optional[int] = None,
        month: Optional[int] = None,
        statuses: Optional[Sequence[PayrollPeriodStatus]] = None,
    ) -> List[PayrollPeriod]:
        ...

    @abstractmethod
    async def has_closed_periods(self, year: int) -> bool:
        """Есть ли за год периоды, вышедшие из DRAFT (их листки ссылаются на шкалы года)."""
        ...

    @abstractmethod
    async def update_period_status(
        self,
        period_id: int,
        from_status: PayrollPeriodStatus,
        to_status: PayrollPeriodStatus,
        operator_id: int,
        at: datetime,
    ) -> bool:
        """
        Условный переход статуса: применяется, только если период всё ещё в from_status.

        Returns:
            bool: False, если статус уже другой (ничего не изменено)
        """
        ...

    @abstractmethod
    async def replace_slips(
        self,
        period_id: int,
        slips: Sequence[PayrollSlip],
        operator_id: int,
        at: datetime,
    ) -> bool:
        """
        Атомарно: DRAFT -> CALCULATED, удалить старые листки периода, вставить новые.

        Returns:
            bool: False, если период уже не в DRAFT (ничего не записано)
        """
        ...

    @abstractmethod
    async def list_slips(self, period_id: int) -> List[PayrollSlip]:
        ...

    @abstractmethod
    async def get_slip(self, period_id: int, employee_id: int) -> Optional[PayrollSlip]:
        ...

    @abstractmethod
    async def list_employee_slips(
        self, employee_id: int, company_id: int, year: Optional[int] = None
    ) -> List[Tuple[PayrollSlip, PayrollPeriod]]:
        ...

    @abstractmethod
    async def list_period_inputs(self, period_id: int) -> List[PayrollPeriodInput]:
        ...

    @abstractmethod
    async def get_period_input(self, period_id: int, employee_id: int) -> Optional[PayrollPeriodInput]:
        ...

    @abstractmethod
    async def save_period_input(self, period_input: PayrollPeriodInput) -> PayrollPeriodInput:
        ...

    # === Шаблоны шкал ===

    @abstractmethod
    async def create_template(self, template: InsuranceGradeTemplate) -> InsuranceGradeTemplate:
        ...

    @abstractmethod
    async def get_template(self, template_id: int) -> Optional[InsuranceGradeTemplate]:
        ...

    @abstractmethod
    async def list_templates(self) -> List[InsuranceGradeTemplate]:
        ...

    @abstractmethod
    async def delete_template(self, template: InsuranceGradeTemplate) -> None:
        ...
