"""Определение ступени страховой шкалы по зарплате."""

from __future__ import annotations

from collections import defaultdict
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Sequence, TypeVar, Union, TYPE_CHECKING

from core.logging.logger import logger
from core.utils.money import Number, to_decimal
from domain.entities.insurance_grade import InsuranceGrade, InsuranceScheme
from domain.exceptions import ComputationError, GradeTableNotFoundError, ValidationError

if TYPE_CHECKING:
    from shared.services.payroll_store.base import PayrollStore

Bracket = TypeVar("Bracket")


def pick_bracket(brackets: Sequence[Bracket], value: Decimal) -> Optional[Bracket]:
    """
    Первая ступень (по возрастанию), в границы которой попадает value.

    Если ни одна не подошла, возвращается последняя (самая высокая) ступень:
    верхняя ступень считается открытой, даже если в данных у неё задан максимум.
    Пустой список -> None.
    """
    for bracket in brackets:
        if bracket.contains(value):
            return bracket
    return brackets[-1] if brackets else None


def validate_contiguous_brackets(
    rows: Sequence[Bracket],
    lower: str,
    upper: str,
    label: str,
    **context,
) -> None:
    """
    Проверить диапазоны, упорядоченные по возрастанию, на покрытие [0, +inf).

    Нижняя граница каждого следующего диапазона равна верхней границе предыдущего,
    точка стыка достаётся нижнему диапазону (pick_bracket берёт первое совпадение).
    Открытым (upper = None) должен быть ровно один диапазон - последний.
    """
    if not rows:
        raise ValidationError(f"{label}: таблица пуста", **context)

    if getattr(rows[0], lower) != 0:
        raise ValidationError(
            f"{label}: первый диапазон должен начинаться с 0",
            first_min=str(getattr(rows[0], lower)),
            **context,
        )

    open_positions = [index for index, row in enumerate(rows) if getattr(row, upper) is None]
    if open_positions != [len(rows) - 1]:
        raise ValidationError(
            f"{label}: открытым (без верхней границы) должен быть ровно один диапазон - последний",
            open_positions=open_positions,
            **context,
        )

    for index, row in enumerate(rows[:-1]):
        if getattr(row, upper) <= getattr(row, lower):
            raise ValidationError(
                f"{label}: верхняя граница диапазона должна быть больше нижней",
                position=index,
                min_value=str(getattr(row, lower)),
                max_value=str(getattr(row, upper)),
                **context,
            )

    for index, (previous, current) in enumerate(zip(rows, rows[1:]), start=1):
        if getattr(current, lower) != getattr(previous, upper):
            raise ValidationError(
                f"{label}: диапазоны пересекаются или между ними есть разрыв",
                position=index,
                previous_max=str(getattr(previous, upper)),
                min_value=str(getattr(current, lower)),
                **context,
            )


def parse_scheme(scheme: Union[InsuranceScheme, str]) -> InsuranceScheme:
    if isinstance(scheme, InsuranceScheme):
        return scheme
    try:
        return InsuranceScheme(str(scheme).upper())
    except ValueError:
        raise ValidationError(f"Неизвестный вид страхования: {scheme}", scheme=scheme)


class GradeTable:
    """Снимок страховых шкал одного года по всем видам страхования."""

    def __init__(self, year: int, grades: Iterable[InsuranceGrade]):
        self.year = year
        self._by_scheme: Dict[InsuranceScheme, List[InsuranceGrade]] = defaultdict(list)
        for grade in grades:
            self._by_scheme[grade.scheme].append(grade)
        for rows in self._by_scheme.values():
            rows.sort(key=lambda g: g.grade_number)

    def grades(self, scheme: InsuranceScheme) -> List[InsuranceGrade]:
        rows = self._by_scheme.get(scheme)
        if not rows:
            raise GradeTableNotFoundError(
                f"Нет страховой шкалы {scheme.value} за {self.year} год",
                year=self.year,
                scheme=scheme.value,
            )
        return rows

    def resolve(self, scheme: Union[InsuranceScheme, str], salary: Number) -> InsuranceGrade:
        """Ступень шкалы для зарплаты. Выше всех максимумов - самая высокая ступень."""
        scheme = parse_scheme(scheme)
        salary = to_decimal(salary, "salary")
        if salary < 0:
            raise ValidationError("Зарплата не может быть отрицательной", salary=str(salary))

        rows = self.grades(scheme)
        grade = pick_bracket(rows, salary)
        if not grade.contains(salary):
            logger.warning(
                "Зарплата выше всех ступеней шкалы, применена верхняя ступень",
                year=self.year,
                scheme=scheme.value,
                salary=str(salary),
                grade_number=grade.grade_number,
            )
        return grade

    def by_number(self, scheme: InsuranceScheme, grade_number: int) -> InsuranceGrade:
        """Ступень по номеру, назначенному в профиле сотрудника."""
        for grade in self.grades(scheme):
            if grade.grade_number == grade_number:
                return grade
        raise ComputationError(
            f"В шкале {scheme.value} за {self.year} год нет ступени {grade_number}",
            year=self.year,
            scheme=scheme.value,
            grade_number=grade_number,
        )


class InsuranceGradeResolver:
    """Определение ступени по текущим данным хранилища (без кэширования между вызовами)."""

    def __init__(self, store: "PayrollStore"):
        self.store = store

    async def resolve(self, year: int, scheme: Union[InsuranceScheme, str], salary: Number) -> InsuranceGrade:
        scheme = parse_scheme(scheme)
        salary = to_decimal(salary, "salary")
        if salary < 0:
            raise ValidationError("Зарплата не может быть отрицательной", salary=str(salary))

        grades = await self.store.get_grades(year, scheme)
        return GradeTable(year, grades).resolve(scheme, salary)
