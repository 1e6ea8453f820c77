"""Таблицы удержания налога у источника."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections import defaultdict
from decimal import Decimal
from typing import Dict, List, Optional, Sequence

from core.config.settings import settings
from core.logging.logger import logger
from core.utils.money import Number, ZERO, to_decimal
from domain.entities.withholding_tax_bracket import WithholdingTaxBracket
from domain.exceptions import ValidationError
from shared.services.insurance_grade_resolver import pick_bracket


class WithholdingTable(ABC):
    """Источник суммы налога к удержанию по начислению за месяц и числу иждивенцев."""

    @abstractmethod
    def lookup(self, gross_pay: Decimal, dependents: int, statutory_deductions: Decimal = ZERO) -> Decimal:
        """
        Сумма налога (без округления).

        statutory_deductions - удержанные взносы сотрудника (страхование труда,
        медицинское страхование, добровольные пенсионные отчисления).
        """
        ...


class BracketWithholdingTable(WithholdingTable):
    """Табличное удержание: строки на каждое число иждивенцев, диапазоны по начислению."""

    def __init__(self, brackets: Sequence[WithholdingTaxBracket]):
        self._by_dependents: Dict[int, List[WithholdingTaxBracket]] = defaultdict(list)
        for bracket in brackets:
            self._by_dependents[bracket.dependents].append(bracket)
        if 0 not in self._by_dependents:
            raise ValidationError("Таблица удержания должна содержать строки для 0 иждивенцев")
        for rows in self._by_dependents.values():
            rows.sort(key=lambda b: b.min_pay)

    def lookup(self, gross_pay: Decimal, dependents: int, statutory_deductions: Decimal = ZERO) -> Decimal:
        # Таблица уже учитывает взносы: строки ищутся по начислению
        column = max(key for key in self._by_dependents if key <= max(dependents, 0))
        bracket = pick_bracket(self._by_dependents[column], gross_pay)
        return to_decimal(bracket.tax_amount)


class FlatRateWithholdingTable(WithholdingTable):
    """
    Упрощённое удержание: ставка от облагаемого дохода сверх порога.

    Облагаемый доход - начисление за вычетом взносов сотрудника;
    на каждого иждивенца он уменьшается ещё на фиксированную сумму.
    """

    def __init__(
        self,
        threshold: Number,
        rate: Optional[Number] = None,
        dependent_allowance: Optional[Number] = None,
    ):
        self.threshold = to_decimal(threshold, "threshold")
        self.rate = to_decimal(rate if rate is not None else settings.payroll_flat_withholding_rate, "rate")
        self.dependent_allowance = to_decimal(
            dependent_allowance
            if dependent_allowance is not None
            else settings.payroll_flat_withholding_dependent_allowance,
            "dependent_allowance",
        )

    def lookup(self, gross_pay: Decimal, dependents: int, statutory_deductions: Decimal = ZERO) -> Decimal:
        taxable_income = gross_pay - to_decimal(statutory_deductions, "statutory_deductions")
        taxable = taxable_income - self.threshold - self.dependent_allowance * max(dependents, 0)
        return max(ZERO, taxable) * self.rate


def get_withholding_table(
    brackets: Sequence[WithholdingTaxBracket],
    threshold: Number,
    year: Optional[int] = None,
) -> WithholdingTable:
    """Табличное удержание, если таблица за год загружена; иначе упрощённое по ставке."""
    if brackets:
        return BracketWithholdingTable(brackets)

    logger.warning(
        "Таблица удержания за год не загружена, используется упрощённое удержание по ставке",
        year=year,
        rate=str(settings.payroll_flat_withholding_rate),
    )
    return FlatRateWithholdingTable(threshold)
