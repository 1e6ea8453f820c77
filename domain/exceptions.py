"""Типизированные ошибки движка расчёта зарплаты."""

from typing import Any, Dict, Optional


class PayrollError(Exception):
    """Базовая ошибка движка. details - структурированный контекст для вызывающего кода."""

    def __init__(self, message: str, **details: Any):
        super().__init__(message)
        self.message = message
        self.details: Dict[str, Any] = details

    def __str__(self) -> str:
        return self.message


class ValidationError(PayrollError):
    """Некорректные входные данные (отрицательная зарплата, месяц вне диапазона, ставка вне границ)."""


class ConflictError(PayrollError):
    """Нарушение уникальности (шкала года уже загружена, период уже создан и т.д.)."""


class NotFoundError(PayrollError):
    """Отсутствует период, настройка, шаблон или страховая шкала."""


class PreconditionError(PayrollError):
    """Операция вызвана из неподходящего состояния жизненного цикла."""

    def __init__(
        self,
        message: str,
        required_status: Optional[str] = None,
        actual_status: Optional[str] = None,
        **details: Any
    ):
        super().__init__(message, required_status=required_status, actual_status=actual_status, **details)
        self.required_status = required_status
        self.actual_status = actual_status


class ComputationError(PayrollError):
    """Нарушение целостности данных, при котором расчёт невозможен."""


class GradeTableNotFoundError(NotFoundError, ComputationError):
    """Для (year, scheme) нет ни одной ступени страховой шкалы."""
