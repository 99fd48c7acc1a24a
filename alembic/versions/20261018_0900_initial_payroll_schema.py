"""Initial payroll schema: users, profiles, CTC structures, payslips

Revision ID: 20261018_0900_initial_payroll_schema
Revises:
Create Date: 2026-10-18 09:00:00.000000

This migration creates:
- users, departments, employee_profiles
- ctc_structures with allowance/deduction lines
- payslips with snapshot allowance/deduction lines
- audit_logs and notifications written by the workflow
"""

from alembic import op
import sqlalchemy as sa

# revision identifiers
revision = '20261018_0900_initial_payroll_schema'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def _line_items(table_name: str, parent_table: str, parent_column: str) -> None:
    op.create_table(
        table_name,
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column(parent_column, sa.Integer(), nullable=False),
        sa.Column('label', sa.String(length=100), nullable=False),
        sa.Column('amount', sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column('sort_order', sa.Integer(), nullable=False, server_default='0'),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            [parent_column], [f'{parent_table}.id'],
            name=f'fk_{table_name}_{parent_column}_{parent_table}',
            ondelete='CASCADE',
        ),
        sa.PrimaryKeyConstraint('id', name=f'pk_{table_name}'),
    )
    op.create_index(f'ix_{table_name}_{parent_column}', table_name, [parent_column])


def upgrade() -> None:
    """Create payroll tables."""

    approval_status = sa.Enum('PENDING', 'APPROVED', 'REJECTED', name='approvalstatus')
    user_role = sa.Enum('EMPLOYEE', 'HR', 'HR_MANAGER', 'ADMIN', name='userrole')
    audit_action = sa.Enum(
        'CREATED', 'APPROVED', 'REJECTED', 'STATUS_CHANGED', 'AUTO_REJECT', 'RELEASED',
        name='auditaction',
    )
    notification_type = sa.Enum(
        'CTC_SUBMITTED', 'CTC_APPROVED', 'CTC_REJECTED', 'CTC_AUTO_REJECTED',
        'PAYSLIP_CREATED', 'PAYSLIP_STATUS', 'PAYSLIP_RELEASED', 'INFO',
        name='notificationtype',
    )

    # ===========================================
    # USERS AND PROFILES
    # ===========================================
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('full_name', sa.String(length=200), nullable=False),
        sa.Column('role', user_role, nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name='pk_users'),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'departments',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name='pk_departments'),
        sa.UniqueConstraint('name', name='uq_departments_name'),
    )

    op.create_table(
        'employee_profiles',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('department_id', sa.Integer(), nullable=True),
        sa.Column('employee_code', sa.String(length=50), nullable=True),
        sa.Column('address', sa.String(length=200), nullable=True),
        sa.Column('phone', sa.String(length=20), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ['user_id'], ['users.id'],
            name='fk_employee_profiles_user_id_users', ondelete='CASCADE',
        ),
        sa.ForeignKeyConstraint(
            ['department_id'], ['departments.id'],
            name='fk_employee_profiles_department_id_departments', ondelete='SET NULL',
        ),
        sa.PrimaryKeyConstraint('id', name='pk_employee_profiles'),
        sa.UniqueConstraint('user_id', name='uq_employee_profiles_user_id'),
    )

    # ===========================================
    # CTC STRUCTURES
    # ===========================================
    op.create_table(
        'ctc_structures',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('employee_profile_id', sa.Integer(), nullable=False),
        sa.Column('status', approval_status, nullable=False),
        sa.Column('is_approved', sa.Boolean(), nullable=False, server_default=sa.false(),
                  comment='Mirrors status == approved'),
        sa.Column('basic', sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column('hra', sa.Numeric(precision=15, scale=2), nullable=False,
                  comment='House rent allowance'),
        sa.Column('tax_percent', sa.Numeric(precision=5, scale=2), nullable=False),
        sa.Column('gross_ctc', sa.Numeric(precision=15, scale=2), nullable=False,
                  comment='basic + hra + sum(allowances)'),
        sa.Column('effective_from', sa.Date(), nullable=False),
        sa.Column('effective_to', sa.Date(), nullable=False),
        sa.Column('created_by_user_id', sa.Integer(), nullable=True),
        sa.Column('updated_by_id', sa.Integer(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint('hra >= 0', name='ck_ctc_structures_hra_non_negative'),
        sa.CheckConstraint('basic > 0', name='ck_ctc_structures_basic_positive'),
        sa.ForeignKeyConstraint(
            ['employee_profile_id'], ['employee_profiles.id'],
            name='fk_ctc_structures_employee_profile_id_employee_profiles', ondelete='CASCADE',
        ),
        sa.PrimaryKeyConstraint('id', name='pk_ctc_structures'),
    )
    op.create_index('ix_ctc_structures_employee_profile_id', 'ctc_structures', ['employee_profile_id'])
    op.create_index('ix_ctc_structures_status', 'ctc_structures', ['status'])
    op.create_index('ix_ctc_structures_profile_status', 'ctc_structures', ['employee_profile_id', 'status'])

    _line_items('ctc_allowances', 'ctc_structures', 'ctc_structure_id')
    _line_items('ctc_deductions', 'ctc_structures', 'ctc_structure_id')

    # ===========================================
    # PAYSLIPS
    # ===========================================
    op.create_table(
        'payslips',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('employee_profile_id', sa.Integer(), nullable=False),
        sa.Column('ctc_structure_id', sa.Integer(), nullable=True,
                  comment='CTC the snapshot was taken from'),
        sa.Column('year', sa.Integer(), nullable=False),
        sa.Column('month', sa.Integer(), nullable=False),
        sa.Column('status', approval_status, nullable=False),
        sa.Column('is_released', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('released_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('basic', sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column('hra', sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column('gross_pay', sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column('total_allowances', sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column('total_deductions', sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column('tax_deducted', sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column('lop_days', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('lop_deduction', sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column('net_pay', sa.Numeric(precision=15, scale=2), nullable=False),
        sa.Column('created_by_user_id', sa.Integer(), nullable=True),
        sa.Column('updated_by_id', sa.Integer(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint('month >= 1 AND month <= 12', name='ck_payslips_month_range'),
        sa.CheckConstraint('lop_days >= 0 AND lop_days <= 31', name='ck_payslips_lop_days_range'),
        sa.ForeignKeyConstraint(
            ['employee_profile_id'], ['employee_profiles.id'],
            name='fk_payslips_employee_profile_id_employee_profiles', ondelete='CASCADE',
        ),
        sa.ForeignKeyConstraint(
            ['ctc_structure_id'], ['ctc_structures.id'],
            name='fk_payslips_ctc_structure_id_ctc_structures', ondelete='SET NULL',
        ),
        sa.PrimaryKeyConstraint('id', name='pk_payslips'),
    )
    op.create_index('ix_payslips_employee_profile_id', 'payslips', ['employee_profile_id'])
    op.create_index('ix_payslips_status', 'payslips', ['status'])
    op.create_index('ix_payslips_period', 'payslips', ['employee_profile_id', 'year', 'month'])

    _line_items('payslip_allowances', 'payslips', 'payslip_id')
    _line_items('payslip_deductions', 'payslips', 'payslip_id')

    # ===========================================
    # AUDIT AND NOTIFICATIONS
    # ===========================================
    op.create_table(
        'audit_logs',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('entity_type', sa.String(length=100), nullable=False),
        sa.Column('entity_id', sa.Integer(), nullable=True),
        sa.Column('action', audit_action, nullable=False),
        sa.Column('details', sa.Text(), nullable=True),
        sa.Column('performed_by_id', sa.Integer(), nullable=True),
        sa.Column('performed_by', sa.String(length=255), nullable=True,
                  comment='Actor email at the time of the action'),
        sa.Column('performed_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id', name='pk_audit_logs'),
    )
    for column in ('entity_type', 'entity_id', 'action', 'performed_by_id', 'performed_at'):
        op.create_index(f'ix_audit_logs_{column}', 'audit_logs', [column])

    op.create_table(
        'notifications',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('subject', sa.String(length=255), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('notification_type', notification_type, nullable=False),
        sa.Column('is_read', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('read_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('email_sent', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('email_sent_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('extra_data', sa.JSON(), nullable=True,
                  comment='Ids of the records the notification refers to'),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ['user_id'], ['users.id'],
            name='fk_notifications_user_id_users', ondelete='CASCADE',
        ),
        sa.PrimaryKeyConstraint('id', name='pk_notifications'),
    )
    op.create_index('ix_notifications_user_id', 'notifications', ['user_id'])
    op.create_index('ix_notifications_notification_type', 'notifications', ['notification_type'])
    op.create_index('ix_notifications_is_read', 'notifications', ['is_read'])


def downgrade() -> None:
    """Drop payroll tables."""
    op.drop_table('notifications')
    op.drop_table('audit_logs')
    op.drop_table('payslip_deductions')
    op.drop_table('payslip_allowances')
    op.drop_table('payslips')
    op.drop_table('ctc_deductions')
    op.drop_table('ctc_allowances')
    op.drop_table('ctc_structures')
    op.drop_table('employee_profiles')
    op.drop_table('departments')
    op.drop_table('users')

    # Drop enums
    sa.Enum(name='notificationtype').drop(op.get_bind(), checkfirst=True)
    sa.Enum(name='auditaction').drop(op.get_bind(), checkfirst=True)
    sa.Enum(name='userrole').drop(op.get_bind(), checkfirst=True)
    sa.Enum(name='approvalstatus').drop(op.get_bind(), checkfirst=True)
