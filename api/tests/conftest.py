"""
Configuración de fixtures para pytest.
"""
from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import datetime
from typing import AsyncGenerator, Dict, List, Optional

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker

import pms_sync.infrastructure.database  # noqa: F401  registra modelos
from pms_sync.core.config import Settings
from pms_sync.domain.entities.pms_records import (
    OutboundPatient,
    PmsAppointment,
    PmsFamily,
    PmsInsurancePlan,
    PmsInsuranceSubscription,
    PmsOperatory,
    PmsPatient,
    PmsProcedure,
    PmsProcedureCode,
    PmsProvider,
)
from pms_sync.infrastructure.database.models import TenantModel
from pms_sync.infrastructure.database.session import Base


@dataclass
class FakePmsAdapter:
    """
    Adapter PMS en memoria.

    Cada lista se puede reemplazar entre corridas; `calls` registra el `since`
    recibido por cada fetch, `fail_on` hace fallar un fetch concreto y
    `fetch_delay` simula un PMS lento.
    """

    configured: bool = True
    pms_source: str = "open_dental"
    patients: List[PmsPatient] = field(default_factory=list)
    appointments: List[PmsAppointment] = field(default_factory=list)
    plans: List[PmsInsurancePlan] = field(default_factory=list)
    subscriptions: List[PmsInsuranceSubscription] = field(default_factory=list)
    procedures: List[PmsProcedure] = field(default_factory=list)
    procedure_codes: List[PmsProcedureCode] = field(default_factory=list)
    providers: List[PmsProvider] = field(default_factory=list)
    operatories: List[PmsOperatory] = field(default_factory=list)
    families: Dict[str, PmsFamily] = field(default_factory=dict)
    pushed: List[OutboundPatient] = field(default_factory=list)
    push_result: str = "9001"
    fail_on: Optional[str] = None
    fetch_delay: float = 0
    calls: Dict[str, List[Optional[datetime]]] = field(default_factory=dict)

    def is_configured(self) -> bool:
        return self.configured

    async def _fetch(self, name: str, items: list, since: Optional[datetime]) -> list:
        if self.fetch_delay:
            await asyncio.sleep(self.fetch_delay)
        self.calls.setdefault(name, []).append(since)
        if self.fail_on == name:
            raise RuntimeError(f"{name} no disponible")
        return list(items)

    async def fetch_patients(self, since=None):
        return await self._fetch("patients", self.patients, since)

    async def fetch_appointments(self, since=None):
        return await self._fetch("appointments", self.appointments, since)

    async def fetch_insurance_plans(self, since=None):
        return await self._fetch("insurance_plans", self.plans, since)

    async def fetch_insurance_subscriptions(self, since=None):
        return await self._fetch("insurance_subscriptions", self.subscriptions, since)

    async def fetch_procedures(self, since=None):
        return await self._fetch("procedures", self.procedures, since)

    async def fetch_procedure_codes(self, since=None):
        return await self._fetch("procedure_codes", self.procedure_codes, since)

    async def fetch_providers(self, since=None):
        return await self._fetch("providers", self.providers, since)

    async def fetch_operatories(self, since=None):
        return await self._fetch("operatories", self.operatories, since)

    async def fetch_family_members(self, patient_pms_id: str) -> PmsFamily:
        self.calls.setdefault("family_members", []).append(None)
        return self.families.get(
            patient_pms_id,
            PmsFamily(guarantor_pms_id=patient_pms_id, member_pms_ids=(patient_pms_id,)),
        )

    async def push_patient(self, patient: OutboundPatient) -> str:
        self.pushed.append(patient)
        return self.push_result


@pytest.fixture(scope="function")
async def session_factory(tmp_path) -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """
    Session factory sobre una base SQLite en archivo por test.

    Los workers abren varias sesiones (lease y trabajo), por eso no se usa
    una base en memoria con una sola conexion.
    """
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
    )
    yield factory

    await engine.dispose()


@pytest.fixture(scope="function")
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Sesión de base de datos para tests de repositorios."""
    async with session_factory() as session:
        yield session


@pytest.fixture
async def tenant_id(session_factory) -> str:
    """Crea un tenant activo y retorna su id."""
    return await create_tenant(session_factory, "t-1", "Clínica Norte")


async def create_tenant(factory, tenant_id: str, name: str = "Clínica", status: str = "active") -> str:
    async with factory() as db:
        db.add(TenantModel(id=tenant_id, name=name, status=status))
        await db.commit()
    return tenant_id


@pytest.fixture
def fake_adapter() -> FakePmsAdapter:
    return FakePmsAdapter()


@pytest.fixture
def test_settings() -> Settings:
    """Settings aislados del entorno."""
    return Settings(
        OPENDENTAL_DEV_KEY="dev",
        OPENDENTAL_CUSTOMER_KEY="cust",
        PMS_SYNC_SCHEDULER_ENABLED=False,
        PMS_SYNC_MAX_CONCURRENT_TENANTS=2,
        PMS_SYNC_LEASE_TTL_SECONDS=60,
        PMS_MAPPINGS_PAGE_SIZE=2,
        PMS_MAPPINGS_MAX_PAGE_SIZE=3,
    )


@pytest.fixture
def make_tenant(session_factory):
    """Factory de tenants adicionales: await make_tenant("t-2", status="suspended")."""
    async def _make(tenant_id: str, name: str = "Clínica", status: str = "active") -> str:
        return await create_tenant(session_factory, tenant_id, name, status)
    return _make
