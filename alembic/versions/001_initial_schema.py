"""Initial schema: profiles, employees, assets, assignments, history tables

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-17

"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '001_initial_schema'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


ENUMS = {
    'app_role': ('admin', 'hr', 'it', 'auditor'),
    'employment_status': ('active', 'left'),
    'location_type': ('office', 'storage', 'server_room', 'rack'),
    'asset_type': ('laptop', 'desktop', 'monitor', 'server', 'network_device', 'accessory'),
    'asset_status': (
        'planned', 'ordered', 'in_use', 'spare', 'under_repair', 'quarantined', 'retired', 'disposed',
    ),
    'ownership_type': ('OrgA', 'OrgB', 'OrgC'),
    'data_classification': ('public', 'internal', 'confidential', 'restricted'),
    'storage_type': ('HDD', 'SSD', 'NVMe'),
    'storage_health': ('healthy', 'warning', 'critical'),
    'assignment_status': ('pending_acceptance', 'active', 'pending_return', 'returned'),
    'change_type': (
        'upgrade', 'maintenance', 'damaged', 'employee_left', 'reassignment', 'end_of_life', 'replacement', 'other',
    ),
    'maintenance_type': ('formatting', 'repair', 'upgrade', 'inspection', 'replacement'),
    'audit_action': ('create', 'update', 'delete', 'assign', 'unassign'),
    'audit_entity_type': ('employee', 'asset', 'assignment', 'maintenance', 'location', 'profile'),
}


def _enum(name: str) -> sa.Enum:
    """Enum column type; on PostgreSQL the type is created up front in upgrade()."""
    values = ENUMS[name]
    return sa.Enum(*values, name=name).with_variant(
        postgresql.ENUM(*values, name=name, create_type=False), 'postgresql'
    )


def _timestamps(with_updated: bool = True):
    columns = [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
    ]
    if with_updated:
        columns.append(
            sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False)
        )
    return columns


def upgrade() -> None:
    bind = op.get_bind()
    if bind.dialect.name == 'postgresql':
        for name, values in ENUMS.items():
            postgresql.ENUM(*values, name=name).create(bind, checkfirst=True)

    op.create_table(
        'profiles',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('full_name', sa.String(), nullable=True),
        sa.Column('password_hash', sa.String(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email', name='uq_profiles_email'),
    )
    op.create_index('ix_profiles_email', 'profiles', ['email'])

    op.create_table(
        'user_roles',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('role', _enum('app_role'), nullable=False),
        *_timestamps(with_updated=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['user_id'], ['profiles.id']),
        sa.UniqueConstraint('user_id', 'role', name='uq_user_roles_user_role'),
    )
    op.create_index('ix_user_roles_user_id', 'user_roles', ['user_id'])

    op.create_table(
        'locations',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('type', _enum('location_type'), nullable=False),
        sa.Column('building', sa.String(), nullable=True),
        sa.Column('floor', sa.String(), nullable=True),
        sa.Column('rack_position', sa.String(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.Column('created_by', sa.Integer(), nullable=True),
        sa.Column('updated_by', sa.Integer(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['created_by'], ['profiles.id']),
        sa.ForeignKeyConstraint(['updated_by'], ['profiles.id']),
    )
    op.create_index('ix_locations_name', 'locations', ['name'])

    op.create_table(
        'employees',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('surname', sa.String(), nullable=False),
        sa.Column('department', sa.String(), nullable=True),
        sa.Column('badge_id', sa.String(), nullable=True),
        sa.Column('health_card_id', sa.String(), nullable=True),
        sa.Column('status', _enum('employment_status'), nullable=False, server_default='active'),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=True),
        sa.Column('is_offboarding_complete', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('offboarding_completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('offboarding_completed_by', sa.Integer(), nullable=True),
        *_timestamps(),
        sa.Column('created_by', sa.Integer(), nullable=True),
        sa.Column('updated_by', sa.Integer(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['offboarding_completed_by'], ['profiles.id']),
        sa.ForeignKeyConstraint(['created_by'], ['profiles.id']),
        sa.ForeignKeyConstraint(['updated_by'], ['profiles.id']),
        sa.UniqueConstraint('badge_id', name='uq_employees_badge_id'),
        sa.CheckConstraint("status <> 'left' OR end_date IS NOT NULL", name='ck_employees_left_requires_end_date'),
        sa.CheckConstraint('end_date IS NULL OR end_date >= start_date', name='ck_employees_end_after_start'),
    )
    op.create_index('ix_employees_surname', 'employees', ['surname'])
    op.create_index('ix_employees_status', 'employees', ['status'])

    op.create_table(
        'assets',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('asset_tag', sa.String(), nullable=False),
        sa.Column('type', _enum('asset_type'), nullable=False),
        sa.Column('manufacturer', sa.String(), nullable=False),
        sa.Column('model', sa.String(), nullable=False),
        sa.Column('serial_number', sa.String(), nullable=False),
        sa.Column('hostname', sa.String(), nullable=True),
        sa.Column('operating_system', sa.String(), nullable=True),
        sa.Column('status', _enum('asset_status'), nullable=False, server_default='planned'),
        sa.Column('ownership', _enum('ownership_type'), nullable=False),
        sa.Column('current_location_id', sa.Integer(), nullable=True),
        sa.Column('is_readonly', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('purchase_date', sa.Date(), nullable=True),
        sa.Column('purchase_cost', sa.Numeric(12, 2), nullable=True),
        sa.Column('useful_life_years', sa.Integer(), nullable=True),
        sa.Column('warranty_expiry', sa.Date(), nullable=True),
        sa.Column('cost_center', sa.String(), nullable=True),
        sa.Column('budget_owner', sa.String(), nullable=True),
        sa.Column('security_compliant', sa.Boolean(), nullable=True),
        sa.Column('disk_encryption_enabled', sa.Boolean(), nullable=True),
        sa.Column('antivirus_edr_present', sa.Boolean(), nullable=True),
        sa.Column('admin_privileges_granted', sa.Boolean(), nullable=True),
        sa.Column('data_classification', _enum('data_classification'), nullable=True),
        sa.Column('last_security_check', sa.Date(), nullable=True),
        sa.Column('specs', sa.JSON(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        *_timestamps(),
        sa.Column('created_by', sa.Integer(), nullable=True),
        sa.Column('updated_by', sa.Integer(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['current_location_id'], ['locations.id']),
        sa.ForeignKeyConstraint(['created_by'], ['profiles.id']),
        sa.ForeignKeyConstraint(['updated_by'], ['profiles.id']),
        sa.UniqueConstraint('serial_number', name='uq_assets_serial_number'),
        sa.UniqueConstraint('asset_tag', name='uq_assets_asset_tag'),
    )
    op.create_index('ix_assets_asset_tag', 'assets', ['asset_tag'])
    op.create_index('ix_assets_type', 'assets', ['type'])
    op.create_index('ix_assets_status', 'assets', ['status'])
    op.create_index('ix_assets_current_location_id', 'assets', ['current_location_id'])

    op.create_table(
        'storage_units',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('asset_id', sa.Integer(), nullable=False),
        sa.Column('type', _enum('storage_type'), nullable=False),
        sa.Column('capacity', sa.String(), nullable=False),
        sa.Column('health', _enum('storage_health'), nullable=False, server_default='healthy'),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['asset_id'], ['assets.id']),
    )
    op.create_index('ix_storage_units_asset_id', 'storage_units', ['asset_id'])

    op.create_table(
        'assignments',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('asset_id', sa.Integer(), nullable=False),
        sa.Column('employee_id', sa.Integer(), nullable=False),
        sa.Column('status', _enum('assignment_status'), nullable=False, server_default='pending_acceptance'),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('accepted_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('accepted_by', sa.Integer(), nullable=True),
        sa.Column('acceptance_notes', sa.Text(), nullable=True),
        sa.Column('digital_acknowledgment', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('returned_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('returned_by', sa.Integer(), nullable=True),
        sa.Column('return_condition', sa.String(), nullable=True),
        sa.Column('damage_notes', sa.Text(), nullable=True),
        sa.Column('requires_formatting', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('change_type', _enum('change_type'), nullable=True),
        sa.Column('change_reason', sa.Text(), nullable=True),
        *_timestamps(with_updated=False),
        sa.Column('created_by', sa.Integer(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['asset_id'], ['assets.id']),
        sa.ForeignKeyConstraint(['employee_id'], ['employees.id']),
        sa.ForeignKeyConstraint(['accepted_by'], ['profiles.id']),
        sa.ForeignKeyConstraint(['returned_by'], ['profiles.id']),
        sa.ForeignKeyConstraint(['created_by'], ['profiles.id']),
    )
    op.create_index('ix_assignments_asset_id', 'assignments', ['asset_id'])
    op.create_index('ix_assignments_employee_id', 'assignments', ['employee_id'])
    op.create_index('ix_assignments_status', 'assignments', ['status'])
    op.create_index('ix_assignments_employee_status', 'assignments', ['employee_id', 'status'])
    # At most one open assignment per asset
    op.create_index(
        'uq_assignments_one_open_per_asset',
        'assignments',
        ['asset_id'],
        unique=True,
        postgresql_where=sa.text("status IN ('pending_acceptance', 'active')"),
        sqlite_where=sa.text("status IN ('pending_acceptance', 'active')"),
    )

    op.create_table(
        'maintenance_events',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('asset_id', sa.Integer(), nullable=False),
        sa.Column('type', _enum('maintenance_type'), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('performed_by', sa.String(), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('resulting_health', _enum('storage_health'), nullable=True),
        sa.Column('cost', sa.Numeric(12, 2), nullable=True),
        sa.Column('downtime_hours', sa.Numeric(6, 2), nullable=True),
        sa.Column('parts_replaced', sa.JSON(), nullable=True),
        *_timestamps(with_updated=False),
        sa.Column('created_by', sa.Integer(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['asset_id'], ['assets.id']),
        sa.ForeignKeyConstraint(['created_by'], ['profiles.id']),
    )
    op.create_index('ix_maintenance_events_asset_id', 'maintenance_events', ['asset_id'])
    op.create_index('ix_maintenance_events_date', 'maintenance_events', ['date'])

    op.create_table(
        'location_history',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('asset_id', sa.Integer(), nullable=False),
        sa.Column('location_id', sa.Integer(), nullable=False),
        sa.Column('start_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('end_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('moved_by', sa.Integer(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        *_timestamps(with_updated=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['asset_id'], ['assets.id']),
        sa.ForeignKeyConstraint(['location_id'], ['locations.id']),
        sa.ForeignKeyConstraint(['moved_by'], ['profiles.id']),
    )
    op.create_index('ix_location_history_asset_id', 'location_history', ['asset_id'])
    op.create_index('ix_location_history_location_id', 'location_history', ['location_id'])
    op.create_index(
        'uq_location_history_one_open_per_asset',
        'location_history',
        ['asset_id'],
        unique=True,
        postgresql_where=sa.text('end_date IS NULL'),
        sqlite_where=sa.text('end_date IS NULL'),
    )

    op.create_table(
        'audit_logs',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=True),
        sa.Column('user_email', sa.String(), nullable=True),
        sa.Column('action', _enum('audit_action'), nullable=False),
        sa.Column('entity_type', _enum('audit_entity_type'), nullable=False),
        sa.Column('entity_id', sa.Integer(), nullable=False),
        sa.Column('old_values', sa.JSON(), nullable=True),
        sa.Column('new_values', sa.JSON(), nullable=True),
        sa.Column('changes', sa.JSON(), nullable=True),
        sa.Column('timestamp', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_audit_logs_user_id', 'audit_logs', ['user_id'])
    op.create_index('ix_audit_logs_timestamp', 'audit_logs', ['timestamp'])
    op.create_index('ix_audit_logs_entity', 'audit_logs', ['entity_type', 'entity_id'])

    op.create_table(
        'offboarding_records',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('employee_id', sa.Integer(), nullable=False),
        sa.Column('initiated_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('initiated_by', sa.Integer(), nullable=True),
        sa.Column('pending_assets', sa.JSON(), nullable=True),
        sa.Column('returned_assets', sa.JSON(), nullable=True),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('completed_by', sa.Integer(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        *_timestamps(with_updated=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['employee_id'], ['employees.id']),
        sa.ForeignKeyConstraint(['initiated_by'], ['profiles.id']),
        sa.ForeignKeyConstraint(['completed_by'], ['profiles.id']),
    )
    op.create_index('ix_offboarding_records_employee_id', 'offboarding_records', ['employee_id'])


def downgrade() -> None:
    for table in (
        'offboarding_records',
        'audit_logs',
        'location_history',
        'maintenance_events',
        'assignments',
        'storage_units',
        'assets',
        'employees',
        'locations',
        'user_roles',
        'profiles',
    ):
        op.drop_table(table)

    bind = op.get_bind()
    if bind.dialect.name == 'postgresql':
        for name, values in ENUMS.items():
            postgresql.ENUM(*values, name=name).drop(bind, checkfirst=True)
