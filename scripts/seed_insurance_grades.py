#!/usr/bin/env python3
"""
Скрипт загрузки справочников года из JSON-файлов:
страховые шкалы (data/insurance_grades_<год>.json) и таблица удержания
налога (data/withholding_brackets_<год>.json)
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Optional

# Добавляем корневую папку проекта в Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from core.database.session import get_async_session, close_database
from core.logging.logger import logger, setup_logging
from domain.exceptions import ConflictError, PayrollError
from shared.services.insurance_grade_service import InsuranceGradeService
from shared.services.payroll_store import SqlAlchemyPayrollStore
from shared.services.withholding_bracket_service import WithholdingBracketService


def read_year_file(path: Path, key: str, year: Optional[int] = None):
    """Прочитать файл справочника. Год из аргумента имеет приоритет над годом в файле."""
    with path.open(encoding="utf-8") as f:
        payload = json.load(f)

    year = year or payload.get("year")
    if not year:
        raise ValueError(f"В файле {path} не указан год, передайте --year")
    return int(year), payload.get(key, [])


def read_grade_file(path: Path, year: Optional[int] = None):
    return read_year_file(path, "grades", year)


def read_withholding_file(path: Path, year: Optional[int] = None):
    return read_year_file(path, "brackets", year)


async def seed_insurance_grades(path: Path, year: Optional[int] = None, skip_existing: bool = False) -> int:
    """Загрузить шкалы года. Возвращает число созданных ступеней."""
    year, rows = read_grade_file(path, year)
    logger.info("Начинаю загрузку страховых шкал", year=year, file=str(path), rows=len(rows))

    async with get_async_session() as session:
        service = InsuranceGradeService(SqlAlchemyPayrollStore(session))
        try:
            count = await service.load_grades(year, rows)
        except ConflictError:
            if not skip_existing:
                raise
            logger.info("Шкалы года уже загружены, пропускаю", year=year)
            return 0

    return count


async def seed_withholding_brackets(path: Path, year: Optional[int] = None, skip_existing: bool = False) -> int:
    """Загрузить таблицу удержания года. Возвращает число созданных строк."""
    year, rows = read_withholding_file(path, year)
    logger.info("Начинаю загрузку таблицы удержания", year=year, file=str(path), rows=len(rows))

    async with get_async_session() as session:
        service = WithholdingBracketService(SqlAlchemyPayrollStore(session))
        try:
            count = await service.load_withholding_brackets(year, rows)
        except ConflictError:
            if not skip_existing:
                raise
            logger.info("Таблица удержания года уже загружена, пропускаю", year=year)
            return 0

    return count


async def main():
    """Основная функция"""
    parser = argparse.ArgumentParser(description="Загрузка страховых шкал и таблицы удержания года")
    parser.add_argument(
        "--file",
        type=str,
        default=str(project_root / "data" / "insurance_grades_2026.json"),
        help="JSON-файл со шкалами",
    )
    parser.add_argument(
        "--withholding-file",
        type=str,
        default=str(project_root / "data" / "withholding_brackets_2026.json"),
        help="JSON-файл с таблицей удержания налога",
    )
    parser.add_argument("--year", type=int, default=None, help="Год (по умолчанию из файла)")
    parser.add_argument("--skip-existing", action="store_true", help="Не считать ошибкой уже загруженный год")
    parser.add_argument(
        "--skip-withholding",
        action="store_true",
        help="Не загружать таблицу удержания (расчёт по упрощённой ставке)",
    )
    args = parser.parse_args()

    setup_logging()
    try:
        count = await seed_insurance_grades(Path(args.file), args.year, args.skip_existing)
        print(f"✅ Загружено ступеней: {count}")
        if not args.skip_withholding:
            brackets = await seed_withholding_brackets(
                Path(args.withholding_file), args.year, args.skip_existing
            )
            print(f"✅ Загружено строк таблицы удержания: {brackets}")
    except (PayrollError, ValueError, OSError) as e:
        print(f"❌ Ошибка: {e}")
        sys.exit(1)
    finally:
        await close_database()


if __name__ == "__main__":
    asyncio.run(main())
