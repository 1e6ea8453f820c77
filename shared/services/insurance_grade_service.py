"""Загрузка и правка страховых шкал года."""

from __future__ import annotations

from collections import defaultdict
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from core.logging.logger import logger
from core.utils.money import Number
from domain.entities.insurance_grade import InsuranceGrade, InsuranceScheme
from domain.exceptions import ConflictError, NotFoundError, ValidationError
from shared.schemas.payroll import InsuranceGradeRow, InsuranceGradeUpdate, parse_input
from shared.services.insurance_grade_resolver import parse_scheme, validate_contiguous_brackets
from shared.services.payroll_store.base import PayrollStore

GradeInput = Union[InsuranceGradeRow, Mapping[str, Any]]


def validate_scheme_table(scheme: InsuranceScheme, rows: Sequence[Any]) -> None:
    """
    Проверить шкалу одного вида страхования.

    Ступени нумеруются подряд с 1, первая начинается с 0, каждая следующая
    начинается ровно с верхней границы предыдущей, открытая ступень одна и она последняя.
    """
    ordered = sorted(rows, key=lambda row: row.grade_number)
    numbers = [row.grade_number for row in ordered]
    if numbers != list(range(1, len(ordered) + 1)):
        raise ValidationError(
            "Номера ступеней должны идти подряд начиная с 1",
            scheme=scheme.value,
            grade_numbers=numbers,
        )

    validate_contiguous_brackets(ordered, "min_salary", "max_salary", f"Шкала {scheme.value}", scheme=scheme.value)


class InsuranceGradeService:
    """Сервис страховых шкал (загрузка года, просмотр, правка ступени)."""

    def __init__(self, store: PayrollStore):
        self.store = store

    async def list_grades(self, year: int, scheme: Optional[Union[InsuranceScheme, str]] = None) -> List[InsuranceGrade]:
        if scheme is not None:
            scheme = parse_scheme(scheme)
        return await self.store.get_grades(year, scheme)

    async def load_grades(self, year: int, rows: Iterable[GradeInput]) -> int:
        """
        Загрузить шкалы всех видов страхования за год.

        Returns:
            int: количество созданных ступеней
        """
        parsed = [row if isinstance(row, InsuranceGradeRow) else parse_input(InsuranceGradeRow, row) for row in rows]

        by_scheme: Dict[InsuranceScheme, List[InsuranceGradeRow]] = defaultdict(list)
        for row in parsed:
            by_scheme[row.scheme].append(row)

        missing = [scheme.value for scheme in InsuranceScheme if scheme not in by_scheme]
        if missing:
            raise ValidationError("Не заданы шкалы для видов страхования", year=year, missing=missing)
        for scheme, scheme_rows in by_scheme.items():
            validate_scheme_table(scheme, scheme_rows)

        if await self.store.count_grades(year) > 0:
            raise ConflictError(f"Страховые шкалы за {year} год уже загружены", year=year)

        count = await self.store.create_grades([
            InsuranceGrade(
                year=year,
                scheme=row.scheme,
                grade_number=row.grade_number,
                min_salary=row.min_salary,
                max_salary=row.max_salary,
                insured_amount=row.insured_amount,
            )
            for row in parsed
        ])
        logger.info("Страховые шкалы загружены", year=year, count=count)
        return count

    async def update_grade(
        self,
        grade_id: int,
        min_salary: Number,
        max_salary: Optional[Number],
        insured_amount: Number,
    ) -> InsuranceGrade:
        """Изменить ступень, пока ни один период её года не вышел из DRAFT."""
        changes = parse_input(
            InsuranceGradeUpdate,
            {"min_salary": min_salary, "max_salary": max_salary, "insured_amount": insured_amount},
        )

        grade = await self.store.get_grade(grade_id)
        if grade is None:
            raise NotFoundError("Ступень шкалы не найдена", grade_id=grade_id)

        if await self.store.has_closed_periods(grade.year):
            raise ConflictError(
                f"За {grade.year} год есть рассчитанные периоды, шкалу менять нельзя",
                grade_id=grade_id,
                year=grade.year,
            )

        # Проверяем шкалу целиком с учётом правки
        siblings = await self.store.get_grades(grade.year, grade.scheme)
        candidate = [
            InsuranceGradeRow(
                scheme=row.scheme,
                grade_number=row.grade_number,
                min_salary=changes.min_salary if row.id == grade.id else row.min_salary,
                max_salary=changes.max_salary if row.id == grade.id else row.max_salary,
                insured_amount=changes.insured_amount if row.id == grade.id else row.insured_amount,
            )
            for row in siblings
        ]
        validate_scheme_table(grade.scheme, candidate)

        grade.min_salary = changes.min_salary
        grade.max_salary = changes.max_salary
        grade.insured_amount = changes.insured_amount
        grade = await self.store.save_grade(grade)

        logger.info(
            "Ступень шкалы изменена",
            grade_id=grade_id,
            year=grade.year,
            scheme=grade.scheme.value,
            grade_number=grade.grade_number,
        )
        return grade
