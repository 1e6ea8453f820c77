"""Модель шаблона страховых шкал."""

from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, Enum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from domain.entities.base import Base, Money
from domain.entities.insurance_grade import InsuranceScheme


class InsuranceGradeTemplate(Base):
    """Снимок всех шкал одного года для повторного использования в другом году."""

    __tablename__ = "insurance_grade_templates"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    base_year = Column(Integer, nullable=False)  # Год, с которого снят снимок

    created_by = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    items = relationship(
        "InsuranceGradeTemplateItem",
        back_populates="template",
        cascade="all, delete-orphan",
        order_by="InsuranceGradeTemplateItem.id",
    )

    def __repr__(self) -> str:
        return f"<InsuranceGradeTemplate(id={self.id}, name='{self.name}', base_year={self.base_year})>"


class InsuranceGradeTemplateItem(Base):
    """Строка шаблона - копия одной ступени шкалы без привязки к году."""

    __tablename__ = "insurance_grade_template_items"

    id = Column(Integer, primary_key=True, index=True)
    template_id = Column(
        Integer, ForeignKey("insurance_grade_templates.id", ondelete="CASCADE"), nullable=False, index=True
    )
    scheme = Column(Enum(InsuranceScheme, name="insurance_scheme"), nullable=False)
    grade_number = Column(Integer, nullable=False)
    min_salary = Column(Money, nullable=False)
    max_salary = Column(Money, nullable=True)
    insured_amount = Column(Money, nullable=False)

    template = relationship("InsuranceGradeTemplate", back_populates="items")
