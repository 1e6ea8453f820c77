"""Модель зарплатного профиля сотрудника."""

from sqlalchemy import Column, Integer, Boolean, Date, DateTime, Index, text
from sqlalchemy.sql import func
from domain.entities.base import Base, JSONType, Money, Rate


class EmployeeSalaryProfile(Base):
    """
    Зарплатный профиль сотрудника, действующий с effective_date.

    На пару (employee_id, company_id) активен не более чем один профиль.
    Новый профиль закрывает старый: is_active=False, end_date=effective_date нового.
    """

    __tablename__ = "employee_salary_profiles"
    __table_args__ = (
        Index(
            "uq_employee_salary_profiles_active",
            "employee_id",
            "company_id",
            unique=True,
            postgresql_where=text("is_active"),
            sqlite_where=text("is_active = 1"),
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    employee_id = Column(Integer, nullable=False, index=True)
    company_id = Column(Integer, nullable=False, index=True)

    base_salary = Column(Money, nullable=False)
    allowances = Column(JSONType, nullable=False, default=list)  # [{"name": str, "amount": str}]

    # Номера ступеней; NULL - определить по страхуемой зарплате
    labor_grade = Column(Integer, nullable=True)
    health_grade = Column(Integer, nullable=True)
    pension_grade = Column(Integer, nullable=True)

    employee_pension_rate = Column(Rate, nullable=False, default=0)  # Добровольные отчисления 0..6%
    dependents = Column(Integer, nullable=False, default=0)

    effective_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self) -> str:
        return (
            f"<EmployeeSalaryProfile(id={self.id}, employee_id={self.employee_id}, "
            f"base_salary={self.base_salary}, is_active={self.is_active})>"
        )
