#!/usr/bin/env python3
"""Скрипт для применения миграций Alembic (таблицы расчёта зарплаты)."""

import argparse
import sys
from pathlib import Path
from typing import Optional

# Добавляем корень проекта в PYTHONPATH
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from alembic import command
from alembic.config import Config
from core.logging.logger import logger, setup_logging


def apply_migrations(database_url: Optional[str] = None, revision: str = "head") -> bool:
    """Применяет миграции до указанной ревизии."""
    alembic_cfg_path = project_root / "alembic.ini"
    if not alembic_cfg_path.exists():
        logger.error("Alembic config not found", path=str(alembic_cfg_path))
        return False

    alembic_cfg = Config(str(alembic_cfg_path))
    alembic_cfg.set_main_option("script_location", str(project_root / "migrations"))
    if database_url:
        alembic_cfg.set_main_option("sqlalchemy.url", database_url)

    logger.info("Applying Alembic migrations", revision=revision)
    try:
        command.upgrade(alembic_cfg, revision)
    except Exception as e:
        logger.exception("Error applying migrations", error=str(e))
        return False

    logger.info("Migrations applied successfully", revision=revision)
    return True


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Применение миграций Alembic")
    parser.add_argument("--database-url", type=str, default=None, help="URL базы (по умолчанию DATABASE_URL)")
    parser.add_argument("--revision", type=str, default="head")
    args = parser.parse_args()

    setup_logging()
    success = apply_migrations(args.database_url, args.revision)
    sys.exit(0 if success else 1)
