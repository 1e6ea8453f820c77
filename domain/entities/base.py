"""
Базовый файл для всех доменных сущностей
Решает проблему циклических импортов
"""

from sqlalchemy import JSON, Numeric
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import declarative_base

# Создаем общую Base для всех моделей
Base = declarative_base()

# JSONB на PostgreSQL, обычный JSON на остальных (sqlite в тестах)
JSONType = JSON().with_variant(JSONB(), "postgresql")

# Деньги и ставки храним в фиксированной точке
Money = Numeric(14, 2)
Rate = Numeric(8, 6)
