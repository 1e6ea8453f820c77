"""Shared models package."""

from .payroll_report import (
    PeriodSummary,
    SlipHistoryItem,
    SummaryReport,
)

__all__ = [
    'PeriodSummary',
    'SlipHistoryItem',
    'SummaryReport',
]
