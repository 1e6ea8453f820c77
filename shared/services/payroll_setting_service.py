"""Настройка расчёта зарплаты компании."""

from __future__ import annotations

from typing import Any, Optional

from core.config.settings import settings
from core.logging.logger import logger
from domain.entities.payroll_setting import PayrollSetting
from domain.exceptions import NotFoundError
from shared.schemas.payroll import PayrollSettingUpdate, parse_input
from shared.services.payroll_store.base import PayrollStore


def build_default_setting(company_id: int) -> PayrollSetting:
    """Настройка со значениями по умолчанию из конфигурации (payroll_default_*)."""
    return PayrollSetting(
        company_id=company_id,
        labor_insurance_rate=settings.payroll_default_labor_insurance_rate,
        labor_insurance_emp_share=settings.payroll_default_labor_insurance_emp_share,
        labor_insurance_employer_share=settings.payroll_default_labor_insurance_employer_share,
        health_insurance_rate=settings.payroll_default_health_insurance_rate,
        health_insurance_emp_share=settings.payroll_default_health_insurance_emp_share,
        health_insurance_employer_share=settings.payroll_default_health_insurance_employer_share,
        health_insurance_avg_dependents=settings.payroll_default_health_insurance_avg_dependents,
        health_insurance_max_dependents=settings.payroll_default_health_insurance_max_dependents,
        labor_pension_rate=settings.payroll_default_labor_pension_rate,
        overtime_rate_1=settings.payroll_default_overtime_rate_1,
        overtime_rate_2=settings.payroll_default_overtime_rate_2,
        overtime_rate_holiday=settings.payroll_default_overtime_rate_holiday,
        minimum_wage=settings.payroll_default_minimum_wage,
        withholding_threshold=settings.payroll_default_withholding_threshold,
    )


class PayrollSettingService:
    """Чтение и изменение ставок компании."""

    def __init__(self, store: PayrollStore):
        self.store = store

    async def get_setting(self, company_id: int, create_default: bool = False) -> Optional[PayrollSetting]:
        """
        Настройка компании.

        Args:
            create_default: создать настройку из значений по умолчанию, если её нет
        """
        setting = await self.store.get_setting(company_id)
        if setting is None and create_default:
            setting = await self.store.save_setting(build_default_setting(company_id))
            logger.info("Создана настройка зарплаты по умолчанию", company_id=company_id)
        return setting

    async def update_setting(self, company_id: int, **changes: Any) -> PayrollSetting:
        """Изменить переданные поля. Настройки нет -> NotFoundError."""
        update = parse_input(PayrollSettingUpdate, changes)

        setting = await self.store.get_setting(company_id)
        if setting is None:
            raise NotFoundError("Не задана настройка зарплаты компании", company_id=company_id)

        values = update.model_dump(exclude_unset=True)
        for field_name, value in values.items():
            setattr(setting, field_name, value)
        setting = await self.store.save_setting(setting)

        logger.info("Настройка зарплаты изменена", company_id=company_id, fields=sorted(values))
        return setting
