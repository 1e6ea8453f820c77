"""
Конфигурация pytest для тестов движка расчёта зарплаты
Фикстуры БД (sqlite+aiosqlite во временном файле) и построители сущностей для unit тестов
"""
import json
from datetime import date
from decimal import Decimal
from pathlib import Path

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

import domain.entities  # noqa: F401  регистрирует таблицы в Base.metadata
from domain.entities.base import Base
from domain.entities.employee_salary_profile import EmployeeSalaryProfile
from domain.entities.insurance_grade import InsuranceGrade, InsuranceScheme
from shared.services.insurance_grade_service import InsuranceGradeService
from shared.services.payroll_setting_service import PayrollSettingService, build_default_setting
from shared.services.payroll_store import SqlAlchemyPayrollStore
from shared.services.withholding_bracket_service import WithholdingBracketService
from tests.utils.payroll_helpers import COMPANY_ID, YEAR


GRADES_FILE = Path(__file__).parent.parent / "data" / "insurance_grades_2026.json"
WITHHOLDING_FILE = Path(__file__).parent.parent / "data" / "withholding_brackets_2026.json"


# =============================================================================
# Фикстуры для работы с БД (интеграционные тесты)
# =============================================================================

@pytest_asyncio.fixture
async def test_engine(tmp_path):
    """Тестовый движок: отдельный файл sqlite на каждый тест."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'payroll.db'}",
        poolclass=NullPool,
        echo=False
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    """Фабрика сессий (нужна тестам, которым требуется вторая независимая сессия)."""
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    """Сессия БД для теста."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def store(db_session):
    return SqlAlchemyPayrollStore(db_session)


@pytest.fixture
def grade_rows():
    """Шкалы 2026 года из файла данных."""
    with GRADES_FILE.open(encoding="utf-8") as f:
        return json.load(f)["grades"]


@pytest_asyncio.fixture
async def seeded_grades(store, grade_rows):
    """Загруженные шкалы 2026 года."""
    await InsuranceGradeService(store).load_grades(YEAR, grade_rows)
    return await store.get_grades(YEAR)


@pytest.fixture
def withholding_rows():
    """Таблица удержания 2026 года из файла данных."""
    with WITHHOLDING_FILE.open(encoding="utf-8") as f:
        return json.load(f)["brackets"]


@pytest_asyncio.fixture
async def seeded_withholding(store, withholding_rows):
    """Загруженная таблица удержания 2026 года."""
    await WithholdingBracketService(store).load_withholding_brackets(YEAR, withholding_rows)
    return await store.get_withholding_brackets(YEAR)


@pytest_asyncio.fixture
async def company_setting(store):
    """Настройка компании со значениями по умолчанию."""
    return await PayrollSettingService(store).get_setting(COMPANY_ID, create_default=True)


# =============================================================================
# Построители сущностей для unit тестов (без БД)
# =============================================================================

@pytest.fixture
def make_setting():
    """Настройка по умолчанию с переопределением отдельных полей."""
    def _make(**overrides):
        setting = build_default_setting(COMPANY_ID)
        for name, value in overrides.items():
            setattr(setting, name, value)
        return setting
    return _make


@pytest.fixture
def make_profile():
    """Зарплатный профиль сотрудника."""
    def _make(employee_id=101, base_salary="36000", allowances=None, dependents=0,
              employee_pension_rate="0", **overrides):
        profile = EmployeeSalaryProfile(
            employee_id=employee_id,
            company_id=COMPANY_ID,
            base_salary=Decimal(base_salary),
            allowances=allowances or [],
            dependents=dependents,
            employee_pension_rate=Decimal(employee_pension_rate),
            effective_date=date(YEAR, 1, 1),
            is_active=True,
        )
        for name, value in overrides.items():
            setattr(profile, name, value)
        return profile
    return _make


@pytest.fixture
def make_grade():
    """Ступень шкалы."""
    def _make(grade_number, min_salary, max_salary, insured_amount, scheme=InsuranceScheme.LABOR, year=YEAR):
        return InsuranceGrade(
            year=year,
            scheme=scheme,
            grade_number=grade_number,
            min_salary=Decimal(str(min_salary)),
            max_salary=Decimal(str(max_salary)) if max_salary is not None else None,
            insured_amount=Decimal(str(insured_amount)),
        )
    return _make
