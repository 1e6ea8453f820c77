"""Зарплатные профили сотрудников."""

from __future__ import annotations

from datetime import date
from typing import Any, List, Mapping, Optional, Sequence

from core.logging.logger import logger
from core.utils.money import Number, ZERO
from domain.entities.employee_salary_profile import EmployeeSalaryProfile
from domain.exceptions import ValidationError
from shared.schemas.payroll import SalaryProfileCreate, parse_input
from shared.services.payroll_store.base import PayrollStore


class SalaryProfileService:
    """
    Ведение профилей: новый профиль сотрудника вытесняет действующий.

    Старый профиль не удаляется: он получает is_active=False и end_date,
    равную дате начала действия нового, и остаётся в истории.
    """

    def __init__(self, store: PayrollStore):
        self.store = store

    async def upsert_profile(
        self,
        employee_id: int,
        company_id: int,
        base_salary: Number,
        effective_date: date,
        allowances: Optional[Sequence[Mapping[str, Any]]] = None,
        labor_grade: Optional[int] = None,
        health_grade: Optional[int] = None,
        pension_grade: Optional[int] = None,
        employee_pension_rate: Number = ZERO,
        dependents: int = 0,
    ) -> EmployeeSalaryProfile:
        data = parse_input(
            SalaryProfileCreate,
            {
                "employee_id": employee_id,
                "company_id": company_id,
                "base_salary": base_salary,
                "effective_date": effective_date,
                "allowances": list(allowances or []),
                "labor_grade": labor_grade,
                "health_grade": health_grade,
                "pension_grade": pension_grade,
                "employee_pension_rate": employee_pension_rate,
                "dependents": dependents,
            },
        )

        current = await self.store.get_active_salary_profile(employee_id, company_id)
        if current is not None and data.effective_date < current.effective_date:
            raise ValidationError(
                "Дата начала действия нового профиля раньше действующего",
                employee_id=employee_id,
                effective_date=data.effective_date.isoformat(),
                current_effective_date=current.effective_date.isoformat(),
            )

        profile = EmployeeSalaryProfile(
            employee_id=data.employee_id,
            company_id=data.company_id,
            base_salary=data.base_salary,
            allowances=[{"name": item.name, "amount": str(item.amount)} for item in data.allowances],
            labor_grade=data.labor_grade,
            health_grade=data.health_grade,
            pension_grade=data.pension_grade,
            employee_pension_rate=data.employee_pension_rate,
            dependents=data.dependents,
            effective_date=data.effective_date,
            is_active=True,
        )
        profile = await self.store.supersede_salary_profile(profile)

        logger.info(
            "Зарплатный профиль сохранён",
            profile_id=profile.id,
            employee_id=employee_id,
            company_id=company_id,
            superseded_profile_id=current.id if current else None,
            effective_date=data.effective_date.isoformat(),
        )
        return profile

    async def get_active_profile(self, employee_id: int, company_id: int) -> Optional[EmployeeSalaryProfile]:
        return await self.store.get_active_salary_profile(employee_id, company_id)

    async def list_profiles(self, company_id: int, is_active: Optional[bool] = None) -> List[EmployeeSalaryProfile]:
        return await self.store.list_salary_profiles(company_id, is_active)

