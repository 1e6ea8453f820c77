"""Модель ступени страховой шкалы."""

import enum

from sqlalchemy import Column, Integer, Enum, UniqueConstraint, Index
from domain.entities.base import Base, Money


class InsuranceScheme(enum.Enum):
    """Вид страхования, к которому относится шкала."""
    LABOR = "LABOR"  # Страхование труда
    HEALTH = "HEALTH"  # Медицинское страхование
    PENSION = "PENSION"  # Пенсионные отчисления


class InsuranceGrade(Base):
    """
    Ступень (bracket) страховой шкалы.

    Для пары (year, scheme) ступени идут подряд по grade_number без пересечений
    и покрывают [0, +inf): у верхней ступени max_salary = NULL.
    """

    __tablename__ = "insurance_grades"
    __table_args__ = (
        UniqueConstraint("year", "scheme", "grade_number", name="uq_insurance_grades_year_scheme_grade"),
        Index("idx_insurance_grades_year_scheme", "year", "scheme"),
    )

    id = Column(Integer, primary_key=True, index=True)
    year = Column(Integer, nullable=False, index=True)
    scheme = Column(Enum(InsuranceScheme, name="insurance_scheme"), nullable=False)
    grade_number = Column(Integer, nullable=False)

    min_salary = Column(Money, nullable=False)
    max_salary = Column(Money, nullable=True)  # NULL - открытая верхняя ступень
    insured_amount = Column(Money, nullable=False)  # Страховая база

    def __repr__(self) -> str:
        return (
            f"<InsuranceGrade(year={self.year}, scheme={self.scheme.value if self.scheme else None}, "
            f"grade={self.grade_number}, insured_amount={self.insured_amount})>"
        )

    def contains(self, salary) -> bool:
        """Попадает ли зарплата в границы ступени."""
        return self.min_salary <= salary and (self.max_salary is None or salary <= self.max_salary)
