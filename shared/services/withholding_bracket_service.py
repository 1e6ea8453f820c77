"""Загрузка таблицы удержания налога за год."""

from __future__ import annotations

from collections import defaultdict
from typing import Any, Dict, Iterable, List, Mapping, Union

from core.logging.logger import logger
from domain.entities.withholding_tax_bracket import WithholdingTaxBracket
from domain.exceptions import ConflictError, ValidationError
from shared.schemas.payroll import WithholdingBracketRow, parse_input
from shared.services.insurance_grade_resolver import validate_contiguous_brackets
from shared.services.payroll_store.base import PayrollStore

BracketInput = Union[WithholdingBracketRow, Mapping[str, Any]]


def validate_dependents_column(dependents: int, rows: List[WithholdingBracketRow]) -> None:
    """
    Проверить колонку таблицы для одного числа иждивенцев.

    Диапазоны начисления стыкуются так же, как ступени страховых шкал;
    сумма налога с ростом начисления не убывает.
    """
    ordered = sorted(rows, key=lambda row: row.min_pay)
    validate_contiguous_brackets(
        ordered,
        "min_pay",
        "max_pay",
        f"Таблица удержания (иждивенцев: {dependents})",
        dependents=dependents,
    )

    for previous, current in zip(ordered, ordered[1:]):
        if current.tax_amount < previous.tax_amount:
            raise ValidationError(
                "Сумма налога не может уменьшаться с ростом начисления",
                dependents=dependents,
                min_pay=str(current.min_pay),
                tax_amount=str(current.tax_amount),
                previous_tax_amount=str(previous.tax_amount),
            )


class WithholdingBracketService:
    """Сервис таблицы удержания налога у источника."""

    def __init__(self, store: PayrollStore):
        self.store = store

    async def list_brackets(self, year: int) -> List[WithholdingTaxBracket]:
        return await self.store.get_withholding_brackets(year)

    async def load_withholding_brackets(self, year: int, rows: Iterable[BracketInput]) -> int:
        """
        Загрузить таблицу удержания за год.

        Колонка для 0 иждивенцев обязательна: по ней считаются сотрудники,
        для числа иждивенцев которых своей колонки нет.

        Returns:
            int: количество созданных строк
        """
        parsed = [
            row if isinstance(row, WithholdingBracketRow) else parse_input(WithholdingBracketRow, row)
            for row in rows
        ]

        by_dependents: Dict[int, List[WithholdingBracketRow]] = defaultdict(list)
        for row in parsed:
            by_dependents[row.dependents].append(row)

        if 0 not in by_dependents:
            raise ValidationError("Таблица удержания должна содержать строки для 0 иждивенцев", year=year)
        for dependents, column in sorted(by_dependents.items()):
            validate_dependents_column(dependents, column)

        if await self.store.count_withholding_brackets(year) > 0:
            raise ConflictError(f"Таблица удержания за {year} год уже загружена", year=year)

        count = await self.store.create_withholding_brackets([
            WithholdingTaxBracket(
                year=year,
                dependents=row.dependents,
                min_pay=row.min_pay,
                max_pay=row.max_pay,
                tax_amount=row.tax_amount,
            )
            for row in parsed
        ])
        logger.info(
            "Таблица удержания загружена",
            year=year,
            count=count,
            columns=sorted(by_dependents),
        )
        return count
