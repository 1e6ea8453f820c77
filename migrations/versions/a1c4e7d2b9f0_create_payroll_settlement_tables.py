"""create_payroll_settlement_tables

Создание таблиц расчёта зарплаты: страховые шкалы и шаблоны, настройки компании,
зарплатные профили, учёт сверхурочных, периоды, разовые суммы, листки, таблица удержания.

Revision ID: a1c4e7d2b9f0
Revises:
Create Date: 2026-01-12 10:20:31.482913

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = 'a1c4e7d2b9f0'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


insurance_scheme = sa.Enum('LABOR', 'HEALTH', 'PENSION', name='insurance_scheme')
payroll_period_status = sa.Enum('DRAFT', 'CALCULATED', 'APPROVED', 'PAID', name='payroll_period_status')

json_type = sa.JSON().with_variant(postgresql.JSONB(), 'postgresql')


def money() -> sa.Numeric:
    return sa.Numeric(14, 2)


def rate() -> sa.Numeric:
    return sa.Numeric(8, 6)


def upgrade() -> None:
    """Создание таблиц расчёта зарплаты."""

    # === 1. INSURANCE_GRADES ===

    op.create_table(
        'insurance_grades',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('year', sa.Integer(), nullable=False),
        sa.Column('scheme', insurance_scheme, nullable=False),
        sa.Column('grade_number', sa.Integer(), nullable=False),
        sa.Column('min_salary', money(), nullable=False),
        sa.Column('max_salary', money(), nullable=True),
        sa.Column('insured_amount', money(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('year', 'scheme', 'grade_number', name='uq_insurance_grades_year_scheme_grade')
    )
    op.create_index('ix_insurance_grades_id', 'insurance_grades', ['id'])
    op.create_index('ix_insurance_grades_year', 'insurance_grades', ['year'])
    op.create_index('idx_insurance_grades_year_scheme', 'insurance_grades', ['year', 'scheme'])

    # === 2. INSURANCE_GRADE_TEMPLATES ===

    op.create_table(
        'insurance_grade_templates',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('base_year', sa.Integer(), nullable=False),
        sa.Column('created_by', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_insurance_grade_templates_id', 'insurance_grade_templates', ['id'])

    op.create_table(
        'insurance_grade_template_items',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('template_id', sa.Integer(), nullable=False),
        sa.Column('scheme', insurance_scheme, nullable=False),
        sa.Column('grade_number', sa.Integer(), nullable=False),
        sa.Column('min_salary', money(), nullable=False),
        sa.Column('max_salary', money(), nullable=True),
        sa.Column('insured_amount', money(), nullable=False),
        sa.ForeignKeyConstraint(['template_id'], ['insurance_grade_templates.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_insurance_grade_template_items_id', 'insurance_grade_template_items', ['id'])
    op.create_index('ix_insurance_grade_template_items_template_id', 'insurance_grade_template_items', ['template_id'])

    # === 3. PAYROLL_SETTINGS ===

    op.create_table(
        'payroll_settings',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('company_id', sa.Integer(), nullable=False),
        sa.Column('labor_insurance_rate', rate(), nullable=False),
        sa.Column('labor_insurance_emp_share', rate(), nullable=False),
        sa.Column('labor_insurance_employer_share', rate(), nullable=False),
        sa.Column('health_insurance_rate', rate(), nullable=False),
        sa.Column('health_insurance_emp_share', rate(), nullable=False),
        sa.Column('health_insurance_employer_share', rate(), nullable=False),
        sa.Column('health_insurance_avg_dependents', rate(), nullable=False),
        sa.Column('health_insurance_max_dependents', sa.Integer(), nullable=True),
        sa.Column('labor_pension_rate', rate(), nullable=False),
        sa.Column('overtime_rate_1', rate(), nullable=False),
        sa.Column('overtime_rate_2', rate(), nullable=False),
        sa.Column('overtime_rate_holiday', rate(), nullable=False),
        sa.Column('minimum_wage', money(), nullable=False),
        sa.Column('withholding_threshold', money(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_payroll_settings_id', 'payroll_settings', ['id'])
    op.create_index('ix_payroll_settings_company_id', 'payroll_settings', ['company_id'], unique=True)

    # === 4. EMPLOYEE_SALARY_PROFILES ===

    op.create_table(
        'employee_salary_profiles',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('employee_id', sa.Integer(), nullable=False),
        sa.Column('company_id', sa.Integer(), nullable=False),
        sa.Column('base_salary', money(), nullable=False),
        sa.Column('allowances', json_type, nullable=False),
        sa.Column('labor_grade', sa.Integer(), nullable=True),
        sa.Column('health_grade', sa.Integer(), nullable=True),
        sa.Column('pension_grade', sa.Integer(), nullable=True),
        sa.Column('employee_pension_rate', rate(), nullable=False),
        sa.Column('dependents', sa.Integer(), nullable=False),
        sa.Column('effective_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_employee_salary_profiles_id', 'employee_salary_profiles', ['id'])
    op.create_index('ix_employee_salary_profiles_employee_id', 'employee_salary_profiles', ['employee_id'])
    op.create_index('ix_employee_salary_profiles_company_id', 'employee_salary_profiles', ['company_id'])
    op.create_index('ix_employee_salary_profiles_is_active', 'employee_salary_profiles', ['is_active'])
    # Не более одного активного профиля на сотрудника в компании
    op.create_index(
        'uq_employee_salary_profiles_active',
        'employee_salary_profiles',
        ['employee_id', 'company_id'],
        unique=True,
        postgresql_where=sa.text('is_active'),
    )

    # === 5. ATTENDANCE_RECORDS ===

    op.create_table(
        'attendance_records',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('employee_id', sa.Integer(), nullable=False),
        sa.Column('company_id', sa.Integer(), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('overtime_minutes', sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_attendance_records_id', 'attendance_records', ['id'])
    op.create_index(
        'idx_attendance_records_employee_date', 'attendance_records', ['employee_id', 'company_id', 'date']
    )

    # === 6. PAYROLL_PERIODS ===

    op.create_table(
        'payroll_periods',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('company_id', sa.Integer(), nullable=False),
        sa.Column('year', sa.Integer(), nullable=False),
        sa.Column('month', sa.Integer(), nullable=False),
        sa.Column('status', payroll_period_status, nullable=False),
        sa.Column('calculated_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('calculated_by', sa.Integer(), nullable=True),
        sa.Column('approved_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('approved_by', sa.Integer(), nullable=True),
        sa.Column('paid_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('paid_by', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('company_id', 'year', 'month', name='uq_payroll_periods_company_year_month')
    )
    op.create_index('ix_payroll_periods_id', 'payroll_periods', ['id'])
    op.create_index('ix_payroll_periods_company_id', 'payroll_periods', ['company_id'])
    op.create_index('ix_payroll_periods_status', 'payroll_periods', ['status'])

    # === 7. PAYROLL_PERIOD_INPUTS ===

    op.create_table(
        'payroll_period_inputs',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('period_id', sa.Integer(), nullable=False),
        sa.Column('employee_id', sa.Integer(), nullable=False),
        sa.Column('bonus', money(), server_default='0', nullable=False),
        sa.Column('other_income', money(), server_default='0', nullable=False),
        sa.Column('other_deduction', money(), server_default='0', nullable=False),
        sa.Column('note', sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(['period_id'], ['payroll_periods.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('period_id', 'employee_id', name='uq_payroll_period_inputs_period_employee')
    )
    op.create_index('ix_payroll_period_inputs_id', 'payroll_period_inputs', ['id'])
    op.create_index('ix_payroll_period_inputs_period_id', 'payroll_period_inputs', ['period_id'])

    # === 8. PAYROLL_SLIPS ===

    op.create_table(
        'payroll_slips',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('period_id', sa.Integer(), nullable=False),
        sa.Column('employee_id', sa.Integer(), nullable=False),
        sa.Column('company_id', sa.Integer(), nullable=False),
        sa.Column('base_salary', money(), nullable=False),
        sa.Column('allowances', money(), nullable=False),
        sa.Column('overtime_pay', money(), nullable=False),
        sa.Column('bonus', money(), nullable=False),
        sa.Column('other_income', money(), nullable=False),
        sa.Column('gross_pay', money(), nullable=False),
        sa.Column('labor_insurance', money(), nullable=False),
        sa.Column('health_insurance', money(), nullable=False),
        sa.Column('labor_pension', money(), nullable=False),
        sa.Column('income_tax', money(), nullable=False),
        sa.Column('other_deduction', money(), nullable=False),
        sa.Column('total_deduction', money(), nullable=False),
        sa.Column('net_pay', money(), nullable=False),
        sa.Column('employer_labor_insurance', money(), server_default='0', nullable=False),
        sa.Column('employer_health_insurance', money(), server_default='0', nullable=False),
        sa.Column('employer_pension', money(), server_default='0', nullable=False),
        sa.Column('overtime_details', json_type, nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['period_id'], ['payroll_periods.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('period_id', 'employee_id', name='uq_payroll_slips_period_employee')
    )
    op.create_index('ix_payroll_slips_id', 'payroll_slips', ['id'])
    op.create_index('ix_payroll_slips_period_id', 'payroll_slips', ['period_id'])
    op.create_index('ix_payroll_slips_employee_id', 'payroll_slips', ['employee_id'])
    op.create_index('ix_payroll_slips_company_id', 'payroll_slips', ['company_id'])

    # === 9. WITHHOLDING_TAX_BRACKETS ===

    op.create_table(
        'withholding_tax_brackets',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('year', sa.Integer(), nullable=False),
        sa.Column('dependents', sa.Integer(), nullable=False),
        sa.Column('min_pay', money(), nullable=False),
        sa.Column('max_pay', money(), nullable=True),
        sa.Column('tax_amount', money(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('year', 'dependents', 'min_pay', name='uq_withholding_tax_brackets_year_dep_min')
    )
    op.create_index('ix_withholding_tax_brackets_id', 'withholding_tax_brackets', ['id'])
    op.create_index('idx_withholding_tax_brackets_year', 'withholding_tax_brackets', ['year'])


def downgrade() -> None:
    """Удаление таблиц расчёта зарплаты."""
    op.drop_table('withholding_tax_brackets')
    op.drop_table('payroll_slips')
    op.drop_table('payroll_period_inputs')
    op.drop_table('payroll_periods')
    op.drop_table('attendance_records')
    op.drop_table('employee_salary_profiles')
    op.drop_table('payroll_settings')
    op.drop_table('insurance_grade_template_items')
    op.drop_table('insurance_grade_templates')
    op.drop_table('insurance_grades')

    payroll_period_status.drop(op.get_bind(), checkfirst=True)
    insurance_scheme.drop(op.get_bind(), checkfirst=True)
