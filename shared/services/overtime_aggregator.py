"""Агрегация сверхурочных часов по данным учёта рабочего времени."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections import defaultdict
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Dict, Optional, Sequence

from core.config.settings import settings
from core.utils.money import Number, ZERO, to_decimal
from domain.entities.attendance_record import AttendanceRecord
from domain.exceptions import ValidationError

MINUTES_PER_HOUR = Decimal("60")


@dataclass(frozen=True)
class OvertimeBuckets:
    """Сверхурочные часы по категориям оплаты."""

    tier1_hours: Decimal = ZERO
    tier2_hours: Decimal = ZERO
    holiday_hours: Decimal = ZERO


class OvertimeClassifier(ABC):
    """Стратегия разнесения сверхурочных одного сотрудника по категориям."""

    @abstractmethod
    def classify(self, records: Sequence[AttendanceRecord]) -> OvertimeBuckets:
        ...


class DailyThresholdOvertimeClassifier(OvertimeClassifier):
    """
    Первые tier1_daily_hours сверхурочных часов каждого рабочего дня - tier-1, остаток - tier-2.

    В записях учёта нет признака типа дня, поэтому праздничные часы
    этим классификатором не заполняются (holiday_hours всегда 0).
    """

    def __init__(self, tier1_daily_hours: Optional[Number] = None):
        self.tier1_daily_hours = to_decimal(
            tier1_daily_hours if tier1_daily_hours is not None else settings.payroll_overtime_tier1_daily_hours,
            "tier1_daily_hours",
        )

    def classify(self, records: Sequence[AttendanceRecord]) -> OvertimeBuckets:
        minutes_by_day: Dict[date, int] = defaultdict(int)
        for record in records:
            minutes_by_day[record.date] += record.overtime_minutes or 0

        tier1 = ZERO
        tier2 = ZERO
        for day in sorted(minutes_by_day):
            hours = Decimal(minutes_by_day[day]) / MINUTES_PER_HOUR
            tier1 += min(hours, self.tier1_daily_hours)
            tier2 += max(hours - self.tier1_daily_hours, ZERO)

        return OvertimeBuckets(tier1_hours=tier1, tier2_hours=tier2, holiday_hours=ZERO)


class OvertimeAggregator:
    """Сводит записи учёта одного сотрудника за период в корзины сверхурочных."""

    def __init__(self, classifier: Optional[OvertimeClassifier] = None):
        self.classifier = classifier or DailyThresholdOvertimeClassifier()

    def aggregate(self, records: Sequence[AttendanceRecord]) -> OvertimeBuckets:
        if not records:
            return OvertimeBuckets()

        employees = {(record.employee_id, record.company_id) for record in records}
        if len(employees) > 1:
            raise ValidationError(
                "Записи учёта должны относиться к одному сотруднику",
                employees=sorted(employees),
            )
        for record in records:
            if (record.overtime_minutes or 0) < 0:
                raise ValidationError(
                    "Сверхурочные минуты не могут быть отрицательными",
                    employee_id=record.employee_id,
                    date=record.date.isoformat(),
                )

        return self.classifier.classify(records)
