"""
Утилиты и хелперы для тестов расчёта зарплаты
"""
from sqlalchemy import update

from domain.entities.attendance_record import AttendanceRecord
from domain.entities.payroll_period import PayrollPeriod, PayrollPeriodStatus

COMPANY_ID = 1
YEAR = 2026


async def add_attendance(session, employee_id, day, overtime_minutes, company_id=COMPANY_ID):
    """Добавить запись учёта рабочего времени."""
    session.add(AttendanceRecord(
        employee_id=employee_id,
        company_id=company_id,
        date=day,
        overtime_minutes=overtime_minutes,
    ))
    await session.commit()


async def force_period_status(session, period_id, status):
    """Только для тестов: выставить статус периода в обход жизненного цикла."""
    values = {"status": status}
    if status == PayrollPeriodStatus.DRAFT:
        values.update(calculated_at=None, calculated_by=None)
    await session.execute(update(PayrollPeriod).where(PayrollPeriod.id == period_id).values(**values))
    await session.commit()
