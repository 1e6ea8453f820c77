"""Схемы входных данных."""

from .payroll import (
    PayrollSettingUpdate,
    AllowanceItem,
    SalaryProfileCreate,
    InsuranceGradeRow,
    InsuranceGradeUpdate,
    WithholdingBracketRow,
    GradeTemplateCreate,
    parse_input,
)

__all__ = [
    "PayrollSettingUpdate",
    "AllowanceItem",
    "SalaryProfileCreate",
    "InsuranceGradeRow",
    "InsuranceGradeUpdate",
    "WithholdingBracketRow",
    "GradeTemplateCreate",
    "parse_input",
]
