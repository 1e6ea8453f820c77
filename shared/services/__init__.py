"""Shared services package."""

from .insurance_grade_resolver import InsuranceGradeResolver, GradeTable, pick_bracket
from .overtime_aggregator import OvertimeAggregator, OvertimeBuckets, DailyThresholdOvertimeClassifier
from .payroll_calculator import PayrollCalculator, ResolvedGrades, SlipBreakdown
from .withholding_table import WithholdingTable, BracketWithholdingTable, FlatRateWithholdingTable
from .period_settlement_orchestrator import PeriodSettlementOrchestrator
from .grade_template_manager import GradeTemplateManager
from .insurance_grade_service import InsuranceGradeService
from .withholding_bracket_service import WithholdingBracketService
from .payroll_setting_service import PayrollSettingService
from .salary_profile_service import SalaryProfileService
from .payroll_report_service import PayrollReportService

__all__ = [
    'InsuranceGradeResolver',
    'GradeTable',
    'pick_bracket',
    'OvertimeAggregator',
    'OvertimeBuckets',
    'DailyThresholdOvertimeClassifier',
    'PayrollCalculator',
    'ResolvedGrades',
    'SlipBreakdown',
    'WithholdingTable',
    'BracketWithholdingTable',
    'FlatRateWithholdingTable',
    'PeriodSettlementOrchestrator',
    'GradeTemplateManager',
    'InsuranceGradeService',
    'WithholdingBracketService',
    'PayrollSettingService',
    'SalaryProfileService',
    'PayrollReportService',
]
