"""Модель строки таблицы удержания налога у источника."""

from sqlalchemy import Column, Integer, Index, UniqueConstraint
from domain.entities.base import Base, Money


class WithholdingTaxBracket(Base):
    """
    Строка таблицы удержания: диапазон начислений за месяц и число иждивенцев -> сумма налога.

    Для пары (year, dependents) диапазоны идут подряд без пересечений, у верхнего max_pay = NULL.
    """

    __tablename__ = "withholding_tax_brackets"
    __table_args__ = (
        UniqueConstraint("year", "dependents", "min_pay", name="uq_withholding_tax_brackets_year_dep_min"),
        Index("idx_withholding_tax_brackets_year", "year"),
    )

    id = Column(Integer, primary_key=True, index=True)
    year = Column(Integer, nullable=False)
    dependents = Column(Integer, nullable=False, default=0)
    min_pay = Column(Money, nullable=False)
    max_pay = Column(Money, nullable=True)
    tax_amount = Column(Money, nullable=False)

    def __repr__(self) -> str:
        return f"<WithholdingTaxBracket(year={self.year}, dependents={self.dependents}, min_pay={self.min_pay})>"

    def contains(self, gross_pay) -> bool:
        return self.min_pay <= gross_pay and (self.max_pay is None or gross_pay <= self.max_pay)
