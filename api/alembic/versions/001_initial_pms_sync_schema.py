"""initial_pms_sync_schema

Revision ID: 001
Revises:
Create Date: 2026-10-17 10:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    ]


def _provenance(external_column: str):
    return [
        sa.Column('pms_source', sa.String(length=50), nullable=True),
        sa.Column(external_column, sa.String(length=64), nullable=True),
    ]


def _tenant_fk():
    return sa.Column('tenant_id', sa.String(length=36), sa.ForeignKey('tenants.id'), nullable=False)


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'tenants',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('status', sa.String(length=50), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
    )
    op.create_index('ix_tenants_status', 'tenants', ['status'])

    op.create_table(
        'patients',
        sa.Column('id', sa.String(length=36), primary_key=True),
        _tenant_fk(),
        sa.Column('first_name', sa.String(length=255), nullable=False),
        sa.Column('last_name', sa.String(length=255), nullable=False),
        sa.Column('middle_name', sa.String(length=255), nullable=True),
        sa.Column('dob', sa.Date(), nullable=True),
        sa.Column('gender', sa.String(length=20), nullable=True),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('phone', sa.String(length=50), nullable=True),
        sa.Column('mobile_phone', sa.String(length=50), nullable=True),
        sa.Column('work_phone', sa.String(length=50), nullable=True),
        sa.Column('address', sa.JSON(), nullable=True),
        sa.Column('family_id', sa.String(length=36), nullable=True),
        sa.Column('guarantor_id', sa.String(length=36), nullable=True),
        *_provenance('pms_patient_id'),
        *_timestamps(),
    )
    op.create_index('ix_patients_tenant_id', 'patients', ['tenant_id'])
    op.create_index('ix_patients_family_id', 'patients', ['family_id'])
    op.create_index('ix_patients_pms_patient_id', 'patients', ['pms_patient_id'])

    op.create_table(
        'families',
        sa.Column('id', sa.String(length=36), primary_key=True),
        _tenant_fk(),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('guarantor_id', sa.String(length=36), sa.ForeignKey('patients.id'), nullable=False),
        sa.Column('total_balance', sa.Float(), nullable=True),
        *_provenance('pms_guarantor_id'),
        *_timestamps(),
    )
    op.create_index('ix_families_tenant_id', 'families', ['tenant_id'])

    op.create_table(
        'appointments',
        sa.Column('id', sa.String(length=36), primary_key=True),
        _tenant_fk(),
        sa.Column('patient_id', sa.String(length=36), sa.ForeignKey('patients.id'), nullable=False),
        sa.Column('provider', sa.String(length=255), nullable=False),
        sa.Column('operatory', sa.String(length=100), nullable=True),
        sa.Column('start_time', sa.DateTime(), nullable=False),
        sa.Column('end_time', sa.DateTime(), nullable=False),
        sa.Column('status', sa.String(length=50), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        *_provenance('pms_appointment_id'),
        *_timestamps(),
    )
    op.create_index('ix_appointments_tenant_id', 'appointments', ['tenant_id'])
    op.create_index('ix_appointments_patient_id', 'appointments', ['patient_id'])

    op.create_table(
        'insurance_policies',
        sa.Column('id', sa.String(length=36), primary_key=True),
        _tenant_fk(),
        sa.Column('patient_id', sa.String(length=36), sa.ForeignKey('patients.id'), nullable=False),
        sa.Column('payer_name', sa.String(length=255), nullable=False),
        sa.Column('payer_id', sa.String(length=100), nullable=False),
        sa.Column('plan_name', sa.String(length=255), nullable=True),
        sa.Column('group_number', sa.String(length=100), nullable=True),
        sa.Column('member_id', sa.String(length=100), nullable=True),
        sa.Column('effective_date', sa.Date(), nullable=True),
        sa.Column('termination_date', sa.Date(), nullable=True),
        sa.Column('subscriber_relation', sa.String(length=20), nullable=False),
        sa.Column('is_primary', sa.Boolean(), nullable=True),
        *_provenance('pms_subscription_id'),
        *_timestamps(),
    )
    op.create_index('ix_insurance_policies_tenant_id', 'insurance_policies', ['tenant_id'])
    op.create_index('ix_insurance_policies_patient_id', 'insurance_policies', ['patient_id'])

    op.create_table(
        'completed_procedures',
        sa.Column('id', sa.String(length=36), primary_key=True),
        _tenant_fk(),
        sa.Column('patient_id', sa.String(length=36), sa.ForeignKey('patients.id'), nullable=False),
        sa.Column('appointment_id', sa.String(length=36), sa.ForeignKey('appointments.id'), nullable=True),
        sa.Column('cdt_code', sa.String(length=20), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('proc_date', sa.Date(), nullable=True),
        sa.Column('tooth_number', sa.String(length=20), nullable=True),
        sa.Column('surface', sa.String(length=20), nullable=True),
        sa.Column('fee', sa.Float(), nullable=True),
        sa.Column('status', sa.String(length=30), nullable=True),
        sa.Column('provider_name', sa.String(length=255), nullable=True),
        sa.Column('note', sa.Text(), nullable=True),
        sa.Column('diag_code', sa.String(length=50), nullable=True),
        sa.Column('date_complete', sa.Date(), nullable=True),
        *_provenance('pms_procedure_id'),
        sa.Column('last_synced_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_completed_procedures_tenant_id', 'completed_procedures', ['tenant_id'])
    op.create_index('ix_completed_procedures_patient_id', 'completed_procedures', ['patient_id'])

    op.create_table(
        'providers',
        sa.Column('id', sa.String(length=36), primary_key=True),
        _tenant_fk(),
        sa.Column('first_name', sa.String(length=255), nullable=False),
        sa.Column('last_name', sa.String(length=255), nullable=False),
        sa.Column('npi', sa.String(length=20), nullable=True),
        sa.Column('license', sa.String(length=100), nullable=True),
        sa.Column('specialty', sa.String(length=50), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=True),
        *_provenance('pms_provider_id'),
        *_timestamps(),
    )
    op.create_index('ix_providers_tenant_id', 'providers', ['tenant_id'])

    op.create_table(
        'operatories',
        sa.Column('id', sa.String(length=36), primary_key=True),
        _tenant_fk(),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('short_name', sa.String(length=50), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=True),
        sa.Column('is_hygiene', sa.Boolean(), nullable=True),
        *_provenance('pms_operatory_id'),
        *_timestamps(),
    )
    op.create_index('ix_operatories_tenant_id', 'operatories', ['tenant_id'])

    op.create_table(
        'procedure_codes',
        sa.Column('id', sa.String(length=36), primary_key=True),
        _tenant_fk(),
        sa.Column('code', sa.String(length=20), nullable=False),
        sa.Column('category', sa.String(length=50), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('abbreviation', sa.String(length=100), nullable=True),
        sa.Column('default_fee', sa.Float(), nullable=True),
        sa.Column('typical_duration', sa.Integer(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=True),
        *_provenance('pms_code_id'),
        *_timestamps(),
    )
    op.create_index('ix_procedure_codes_tenant_id', 'procedure_codes', ['tenant_id'])
    op.create_index('ix_procedure_codes_code', 'procedure_codes', ['code'])

    op.create_table(
        'pms_mappings',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('tenant_id', sa.String(length=36), nullable=False),
        sa.Column('pms_source', sa.String(length=50), nullable=False),
        sa.Column('entity_type', sa.String(length=50), nullable=False),
        sa.Column('pms_id', sa.String(length=64), nullable=False),
        sa.Column('internal_id', sa.String(length=36), nullable=False),
        sa.Column('last_synced_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('sync_status', sa.String(length=20), nullable=False),
        sa.UniqueConstraint('tenant_id', 'pms_source', 'entity_type', 'pms_id', name='uq_pms_mapping_external'),
        sa.UniqueConstraint('tenant_id', 'pms_source', 'entity_type', 'internal_id', name='uq_pms_mapping_internal'),
    )
    op.create_index('ix_pms_mappings_tenant_id', 'pms_mappings', ['tenant_id'])

    op.create_table(
        'sync_watermarks',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('tenant_id', sa.String(length=36), nullable=False),
        sa.Column('pms_source', sa.String(length=50), nullable=False),
        sa.Column('entity_type', sa.String(length=50), nullable=False),
        sa.Column('last_synced_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.UniqueConstraint('tenant_id', 'pms_source', 'entity_type', name='uq_sync_watermark'),
    )
    op.create_index('ix_sync_watermarks_tenant_id', 'sync_watermarks', ['tenant_id'])

    op.create_table(
        'sync_leases',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('tenant_id', sa.String(length=36), nullable=False),
        sa.Column('pms_source', sa.String(length=50), nullable=False),
        sa.Column('entity_type', sa.String(length=50), nullable=False),
        sa.Column('holder', sa.String(length=64), nullable=False),
        sa.Column('acquired_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint('tenant_id', 'pms_source', 'entity_type', name='uq_sync_lease'),
    )


def downgrade() -> None:
    """Downgrade schema."""
    for table in (
        'sync_leases',
        'sync_watermarks',
        'pms_mappings',
        'procedure_codes',
        'operatories',
        'providers',
        'completed_procedures',
        'insurance_policies',
        'appointments',
        'families',
        'patients',
        'tenants',
    ):
        op.drop_table(table)
