"""
Modelos de base de datos (ORM).

Todas las entidades son multi-tenant (tenant_id) y las filas creadas por el
sync llevan procedencia (pms_source + id externo) para poder re-resolverse
sin recorrer los mapeos.
"""
import uuid

from sqlalchemy import (
    Column,
    String,
    Integer,
    DateTime,
    Date,
    Text,
    JSON,
    Boolean,
    Float,
    ForeignKey,
    UniqueConstraint,
)
from sqlalchemy.sql import func

from pms_sync.infrastructure.database.session import Base
from pms_sync.shared.constants.pms_constants import (
    AppointmentStatus,
    MAPPING_STATUS_SYNCED,
    TenantStatus,
)


def _uuid() -> str:
    return str(uuid.uuid4())


class TenantModel(Base):
    """Modelo de base de datos para tenants (clínicas)."""

    __tablename__ = "tenants"

    id = Column(String(36), primary_key=True, default=_uuid)
    name = Column(String(255), nullable=False)
    status = Column(String(50), default=TenantStatus.ACTIVE.value, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<Tenant(id={self.id}, name={self.name}, status={self.status})>"


class PatientModel(Base):
    """
    Modelo de base de datos para pacientes.

    dob, pms_source y pms_patient_id son inmutables una vez creados por el
    sync. family_id / guarantor_id los asigna el sync de familias.
    """

    __tablename__ = "patients"

    id = Column(String(36), primary_key=True, default=_uuid)
    tenant_id = Column(String(36), ForeignKey("tenants.id"), nullable=False, index=True)
    first_name = Column(String(255), nullable=False)
    last_name = Column(String(255), nullable=False)
    middle_name = Column(String(255), nullable=True)
    dob = Column(Date, nullable=True)
    gender = Column(String(20), nullable=True)
    email = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)
    mobile_phone = Column(String(50), nullable=True)
    work_phone = Column(String(50), nullable=True)
    address = Column(JSON, nullable=True)  # {street, city, state, zip}
    family_id = Column(String(36), nullable=True, index=True)
    guarantor_id = Column(String(36), nullable=True)
    pms_source = Column(String(50), nullable=True)
    pms_patient_id = Column(String(64), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    def __repr__(self):
        return f"<Patient(id={self.id}, name={self.first_name} {self.last_name})>"


class FamilyModel(Base):
    """Grupo de facturación familiar con su garante."""

    __tablename__ = "families"

    id = Column(String(36), primary_key=True, default=_uuid)
    tenant_id = Column(String(36), ForeignKey("tenants.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    guarantor_id = Column(String(36), ForeignKey("patients.id"), nullable=False)
    total_balance = Column(Float, default=0.0)
    pms_source = Column(String(50), nullable=True)
    pms_guarantor_id = Column(String(64), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())


class AppointmentModel(Base):
    """Modelo de base de datos para citas."""

    __tablename__ = "appointments"

    id = Column(String(36), primary_key=True, default=_uuid)
    tenant_id = Column(String(36), ForeignKey("tenants.id"), nullable=False, index=True)
    patient_id = Column(String(36), ForeignKey("patients.id"), nullable=False, index=True)
    provider = Column(String(255), nullable=False, default="Unknown")
    operatory = Column(String(100), nullable=True)
    # Hora local de la clínica, tal como la reporta el PMS
    start_time = Column(DateTime, nullable=False)
    end_time = Column(DateTime, nullable=False)
    status = Column(String(50), default=AppointmentStatus.SCHEDULED.value)
    notes = Column(Text, nullable=True)
    pms_source = Column(String(50), nullable=True)
    pms_appointment_id = Column(String(64), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())


class InsurancePolicyModel(Base):
    """Póliza de seguro de un paciente."""

    __tablename__ = "insurance_policies"

    id = Column(String(36), primary_key=True, default=_uuid)
    tenant_id = Column(String(36), ForeignKey("tenants.id"), nullable=False, index=True)
    patient_id = Column(String(36), ForeignKey("patients.id"), nullable=False, index=True)
    payer_name = Column(String(255), nullable=False, default="")
    payer_id = Column(String(100), nullable=False, default="")
    plan_name = Column(String(255), nullable=True)
    group_number = Column(String(100), nullable=True)
    member_id = Column(String(100), nullable=True)
    effective_date = Column(Date, nullable=True)
    termination_date = Column(Date, nullable=True)
    subscriber_relation = Column(String(20), nullable=False, default="self")
    is_primary = Column(Boolean, default=True)
    pms_source = Column(String(50), nullable=True)
    pms_subscription_id = Column(String(64), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())


class CompletedProcedureModel(Base):
    """
    Procedimiento completado en el PMS.

    Es la entrada de facturación: solo llegan procedimientos con estado
    'completed'.
    """

    __tablename__ = "completed_procedures"

    id = Column(String(36), primary_key=True, default=_uuid)
    tenant_id = Column(String(36), ForeignKey("tenants.id"), nullable=False, index=True)
    patient_id = Column(String(36), ForeignKey("patients.id"), nullable=False, index=True)
    appointment_id = Column(String(36), ForeignKey("appointments.id"), nullable=True)
    cdt_code = Column(String(20), nullable=False)
    description = Column(Text, nullable=True)
    proc_date = Column(Date, nullable=True)
    tooth_number = Column(String(20), nullable=True)
    surface = Column(String(20), nullable=True)
    fee = Column(Float, default=0.0)
    status = Column(String(30), default="completed")
    provider_name = Column(String(255), nullable=True)
    note = Column(Text, nullable=True)
    diag_code = Column(String(50), nullable=True)
    date_complete = Column(Date, nullable=True)
    pms_source = Column(String(50), nullable=True)
    pms_procedure_id = Column(String(64), nullable=True)
    last_synced_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())


class ProviderModel(Base):
    """Proveedor (odontólogo / higienista)."""

    __tablename__ = "providers"

    id = Column(String(36), primary_key=True, default=_uuid)
    tenant_id = Column(String(36), ForeignKey("tenants.id"), nullable=False, index=True)
    first_name = Column(String(255), nullable=False, default="")
    last_name = Column(String(255), nullable=False, default="")
    npi = Column(String(20), nullable=True)
    license = Column(String(100), nullable=True)
    specialty = Column(String(50), nullable=False, default="general_dentist")
    is_active = Column(Boolean, default=True)
    pms_source = Column(String(50), nullable=True)
    pms_provider_id = Column(String(64), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())


class OperatoryModel(Base):
    """Sillón / sala de atención."""

    __tablename__ = "operatories"

    id = Column(String(36), primary_key=True, default=_uuid)
    tenant_id = Column(String(36), ForeignKey("tenants.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False, default="")
    short_name = Column(String(50), nullable=True)
    is_active = Column(Boolean, default=True)
    is_hygiene = Column(Boolean, default=False)
    pms_source = Column(String(50), nullable=True)
    pms_operatory_id = Column(String(64), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())


class ProcedureCodeModel(Base):
    """Código de procedimiento (CDT) del tenant."""

    __tablename__ = "procedure_codes"

    id = Column(String(36), primary_key=True, default=_uuid)
    tenant_id = Column(String(36), ForeignKey("tenants.id"), nullable=False, index=True)
    code = Column(String(20), nullable=False, index=True)
    category = Column(String(50), nullable=False, default="adjunctive")
    description = Column(Text, nullable=True)
    abbreviation = Column(String(100), nullable=True)
    default_fee = Column(Float, default=0.0)
    typical_duration = Column(Integer, nullable=True)  # minutos
    is_active = Column(Boolean, default=True)
    pms_source = Column(String(50), nullable=True)
    pms_code_id = Column(String(64), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())


class PmsMappingModel(Base):
    """
    Mapeo durable id externo <-> id interno.

    Único por (tenant, source, entity_type, pms_id); el id interno también es
    único dentro del mismo alcance. El motor nunca borra mapeos.
    """

    __tablename__ = "pms_mappings"
    __table_args__ = (
        UniqueConstraint("tenant_id", "pms_source", "entity_type", "pms_id", name="uq_pms_mapping_external"),
        UniqueConstraint("tenant_id", "pms_source", "entity_type", "internal_id", name="uq_pms_mapping_internal"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    tenant_id = Column(String(36), nullable=False, index=True)
    pms_source = Column(String(50), nullable=False)
    entity_type = Column(String(50), nullable=False)
    pms_id = Column(String(64), nullable=False)
    internal_id = Column(String(36), nullable=False)
    last_synced_at = Column(DateTime(timezone=True), nullable=False)
    sync_status = Column(String(20), nullable=False, default=MAPPING_STATUS_SYNCED)

    def __repr__(self):
        return f"<PmsMapping({self.entity_type}:{self.pms_id} -> {self.internal_id})>"


class SyncWatermarkModel(Base):
    """Marca de agua por (tenant, source, entity_type)."""

    __tablename__ = "sync_watermarks"
    __table_args__ = (
        UniqueConstraint("tenant_id", "pms_source", "entity_type", name="uq_sync_watermark"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    tenant_id = Column(String(36), nullable=False, index=True)
    pms_source = Column(String(50), nullable=False)
    entity_type = Column(String(50), nullable=False)
    last_synced_at = Column(DateTime(timezone=True), nullable=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class SyncLeaseModel(Base):
    """Lease exclusivo con TTL por (tenant, source, entity_type)."""

    __tablename__ = "sync_leases"
    __table_args__ = (
        UniqueConstraint("tenant_id", "pms_source", "entity_type", name="uq_sync_lease"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    tenant_id = Column(String(36), nullable=False)
    pms_source = Column(String(50), nullable=False)
    entity_type = Column(String(50), nullable=False)
    holder = Column(String(64), nullable=False)
    acquired_at = Column(DateTime(timezone=True), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)
