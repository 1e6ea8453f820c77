"""
Схемы Pydantic для административного ввода движка расчёта зарплаты
"""

from datetime import date
from decimal import Decimal
from typing import Any, List, Mapping, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError as PydanticValidationError, model_validator

from domain.entities.insurance_grade import InsuranceScheme
from domain.exceptions import ValidationError

Schema = TypeVar("Schema", bound=BaseModel)


class PayrollSettingUpdate(BaseModel):
    """Изменение настройки зарплаты компании. Непереданные поля не меняются."""
    model_config = ConfigDict(extra="forbid")

    labor_insurance_rate: Optional[Decimal] = Field(None, ge=0, le=1)
    labor_insurance_emp_share: Optional[Decimal] = Field(None, ge=0, le=1)
    labor_insurance_employer_share: Optional[Decimal] = Field(None, ge=0, le=1)
    health_insurance_rate: Optional[Decimal] = Field(None, ge=0, le=1)
    health_insurance_emp_share: Optional[Decimal] = Field(None, ge=0, le=1)
    health_insurance_employer_share: Optional[Decimal] = Field(None, ge=0, le=1)
    health_insurance_avg_dependents: Optional[Decimal] = Field(None, ge=0)
    health_insurance_max_dependents: Optional[int] = Field(None, ge=0)
    labor_pension_rate: Optional[Decimal] = Field(None, ge=0, le=1)
    overtime_rate_1: Optional[Decimal] = Field(None, ge=1)
    overtime_rate_2: Optional[Decimal] = Field(None, ge=1)
    overtime_rate_holiday: Optional[Decimal] = Field(None, ge=1)
    minimum_wage: Optional[Decimal] = Field(None, ge=0)
    withholding_threshold: Optional[Decimal] = Field(None, ge=0)

    @model_validator(mode="after")
    def validate_not_null(self) -> "PayrollSettingUpdate":
        """Сбросить в NULL можно только лимит иждивенцев (NULL - без ограничения)."""
        for name in self.model_fields_set:
            if getattr(self, name) is None and name != "health_insurance_max_dependents":
                raise ValueError(f"Поле {name} не может быть пустым")
        return self


class AllowanceItem(BaseModel):
    """Надбавка к окладу."""
    name: str = Field(..., min_length=1, max_length=255)
    amount: Decimal = Field(..., ge=0)


class SalaryProfileCreate(BaseModel):
    """Новый зарплатный профиль сотрудника."""
    model_config = ConfigDict(extra="forbid")

    employee_id: int
    company_id: int
    base_salary: Decimal = Field(..., ge=0)
    allowances: List[AllowanceItem] = Field(default_factory=list)
    labor_grade: Optional[int] = Field(None, ge=1)
    health_grade: Optional[int] = Field(None, ge=1)
    pension_grade: Optional[int] = Field(None, ge=1)
    employee_pension_rate: Decimal = Field(Decimal("0"), ge=0, le=Decimal("0.06"))
    dependents: int = Field(0, ge=0)
    effective_date: date


class InsuranceGradeRow(BaseModel):
    """Ступень страховой шкалы во входных данных (загрузка года, правка)."""
    model_config = ConfigDict(extra="forbid")

    scheme: InsuranceScheme
    grade_number: int = Field(..., ge=1)
    min_salary: Decimal = Field(..., ge=0)
    max_salary: Optional[Decimal] = Field(None, ge=0)
    insured_amount: Decimal = Field(..., gt=0)

    @model_validator(mode="after")
    def validate_bounds(self) -> "InsuranceGradeRow":
        """Верхняя граница не ниже нижней."""
        if self.max_salary is not None and self.max_salary < self.min_salary:
            raise ValueError("max_salary должна быть не меньше min_salary")
        return self


class InsuranceGradeUpdate(BaseModel):
    """Правка границ и страховой базы одной ступени."""
    model_config = ConfigDict(extra="forbid")

    min_salary: Decimal = Field(..., ge=0)
    max_salary: Optional[Decimal] = Field(None, ge=0)
    insured_amount: Decimal = Field(..., gt=0)

    @model_validator(mode="after")
    def validate_bounds(self) -> "InsuranceGradeUpdate":
        if self.max_salary is not None and self.max_salary < self.min_salary:
            raise ValueError("max_salary должна быть не меньше min_salary")
        return self


class WithholdingBracketRow(BaseModel):
    """Строка таблицы удержания налога во входных данных."""
    model_config = ConfigDict(extra="forbid")

    dependents: int = Field(..., ge=0)
    min_pay: Decimal = Field(..., ge=0)
    max_pay: Optional[Decimal] = Field(None, ge=0)
    tax_amount: Decimal = Field(..., ge=0)

    @model_validator(mode="after")
    def validate_bounds(self) -> "WithholdingBracketRow":
        if self.max_pay is not None and self.max_pay < self.min_pay:
            raise ValueError("max_pay должна быть не меньше min_pay")
        return self


class GradeTemplateCreate(BaseModel):
    """Параметры сохранения шкал года как шаблона."""
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None


def parse_input(schema: Type[Schema], data: Mapping[str, Any]) -> Schema:
    """Провалидировать ввод схемой; ошибки pydantic превращаются в ValidationError движка."""
    try:
        return schema.model_validate(dict(data))
    except PydanticValidationError as e:
        errors = [
            {"field": ".".join(str(part) for part in error["loc"]), "message": error["msg"]}
            for error in e.errors()
        ]
        raise ValidationError(f"Некорректные данные {schema.__name__}", errors=errors)
