"""
Модуль доменных сущностей движка расчёта зарплаты
"""

# Импортируем модели в правильном порядке
from .base import Base
from .insurance_grade import InsuranceGrade, InsuranceScheme
from .insurance_grade_template import InsuranceGradeTemplate, InsuranceGradeTemplateItem
from .withholding_tax_bracket import WithholdingTaxBracket
from .payroll_setting import PayrollSetting
from .employee_salary_profile import EmployeeSalaryProfile
from .attendance_record import AttendanceRecord
from .payroll_period import PayrollPeriod, PayrollPeriodStatus
from .payroll_period_input import PayrollPeriodInput
from .payroll_slip import PayrollSlip

__all__ = [
    "Base",
    "InsuranceGrade",
    "InsuranceScheme",
    "InsuranceGradeTemplate",
    "InsuranceGradeTemplateItem",
    "WithholdingTaxBracket",
    "PayrollSetting",
    "EmployeeSalaryProfile",
    "AttendanceRecord",
    "PayrollPeriod",
    "PayrollPeriodStatus",
    "PayrollPeriodInput",
    "PayrollSlip",
]
