"""Шаблоны страховых шкал: снимок года и перенос на другой год."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from core.logging.logger import logger
from domain.entities.insurance_grade import InsuranceGrade
from domain.entities.insurance_grade_template import InsuranceGradeTemplate, InsuranceGradeTemplateItem
from domain.exceptions import ConflictError, NotFoundError
from shared.schemas.payroll import GradeTemplateCreate, parse_input
from shared.services.payroll_store.base import PayrollStore


class GradeTemplateManager:
    """
    Управление шаблонами шкал.

    Шаблон - независимая копия ступеней: ни удаление шаблона, ни правка
    исходных шкал не затрагивают друг друга.
    """

    def __init__(self, store: PayrollStore):
        self.store = store

    async def save_as_template(
        self,
        year: int,
        name: str,
        description: Optional[str] = None,
        created_by: Optional[int] = None,
    ) -> InsuranceGradeTemplate:
        """Скопировать все ступени всех шкал года в новый шаблон."""
        params = parse_input(GradeTemplateCreate, {"name": name or "", "description": description})

        grades = await self.store.get_grades(year)
        if not grades:
            raise NotFoundError(f"Страховые шкалы за {year} год не загружены", year=year)

        template = InsuranceGradeTemplate(
            name=params.name,
            description=params.description,
            base_year=year,
            created_by=created_by,
            items=[
                InsuranceGradeTemplateItem(
                    scheme=grade.scheme,
                    grade_number=grade.grade_number,
                    min_salary=grade.min_salary,
                    max_salary=grade.max_salary,
                    insured_amount=grade.insured_amount,
                )
                for grade in grades
            ],
        )
        template = await self.store.create_template(template)

        logger.info(
            "Шаблон шкал сохранён",
            template_id=template.id,
            template_name=params.name,
            base_year=year,
            item_count=len(grades),
            created_by=created_by,
        )
        return template

    async def instantiate(self, template_id: int, target_year: int) -> Dict[str, Any]:
        """
        Создать шкалы target_year из шаблона.

        Returns:
            dict: {"count": int, "template_name": str}
        """
        template = await self.get_template(template_id)

        if await self.store.count_grades(target_year) > 0:
            raise ConflictError(
                f"Страховые шкалы за {target_year} год уже существуют",
                year=target_year,
                template_id=template_id,
            )

        grades = [
            InsuranceGrade(
                year=target_year,
                scheme=item.scheme,
                grade_number=item.grade_number,
                min_salary=item.min_salary,
                max_salary=item.max_salary,
                insured_amount=item.insured_amount,
            )
            for item in template.items
        ]
        count = await self.store.create_grades(grades)

        logger.info(
            "Шкалы года созданы из шаблона",
            template_id=template_id,
            template_name=template.name,
            year=target_year,
            count=count,
        )
        return {"count": count, "template_name": template.name}

    async def delete_template(self, template_id: int) -> None:
        template = await self.get_template(template_id)
        await self.store.delete_template(template)
        logger.info("Шаблон шкал удалён", template_id=template_id, template_name=template.name)

    async def list_templates(self) -> List[InsuranceGradeTemplate]:
        return await self.store.list_templates()

    async def get_template(self, template_id: int) -> InsuranceGradeTemplate:
        template = await self.store.get_template(template_id)
        if template is None:
            raise NotFoundError("Шаблон шкал не найден", template_id=template_id)
        return template
