"""Модель записи учёта рабочего времени (внешние данные, только чтение)."""

from sqlalchemy import Column, Integer, Date, Index
from domain.entities.base import Base


class AttendanceRecord(Base):
    """Отметка посещаемости сотрудника за день."""

    __tablename__ = "attendance_records"
    __table_args__ = (
        Index("idx_attendance_records_employee_date", "employee_id", "company_id", "date"),
    )

    id = Column(Integer, primary_key=True, index=True)
    employee_id = Column(Integer, nullable=False)
    company_id = Column(Integer, nullable=False)
    date = Column(Date, nullable=False)
    overtime_minutes = Column(Integer, nullable=False, default=0)

    def __repr__(self) -> str:
        return f"<AttendanceRecord(employee_id={self.employee_id}, date={self.date}, overtime_minutes={self.overtime_minutes})>"
