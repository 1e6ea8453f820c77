"""Хранилище движка расчёта зарплаты: интерфейс и реализация на SQLAlchemy."""

from shared.services.payroll_store.base import PayrollStore
from shared.services.payroll_store.sqlalchemy_store import SqlAlchemyPayrollStore

__all__ = ["PayrollStore", "SqlAlchemyPayrollStore"]
