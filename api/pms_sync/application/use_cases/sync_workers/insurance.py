"""
Worker de pólizas de seguro.
"""
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from loguru import logger
from sqlalchemy import func, select

from pms_sync.application.services.normalizers import map_subscriber_relation
from pms_sync.application.use_cases.sync_workers.base import EntitySyncWorker, SyncContext
from pms_sync.domain.entities.pms_records import PmsInsurancePlan, PmsInsuranceSubscription
from pms_sync.domain.entities.sync_result import RecordOutcome
from pms_sync.infrastructure.database.models import InsurancePolicyModel
from pms_sync.shared.constants.pms_constants import EntityType
from pms_sync.shared.exceptions.sync import MissingDependencyError

INSURANCE_PLAN_DEPENDENCY = "insurance_plan"


@dataclass(frozen=True)
class PolicyCandidate:
    """Suscripción unida a su plan (None si el plan no existe en el PMS)."""

    subscription: PmsInsuranceSubscription
    plan: Optional[PmsInsurancePlan]

    @property
    def pms_id(self) -> str:
        return self.subscription.pms_id


class InsuranceSyncWorker(EntitySyncWorker[PolicyCandidate]):
    """
    Pólizas. El cache de planes se arma en cada corrida con una lectura
    completa de planes: una suscripción nueva puede apuntar a un plan viejo
    que un filtro incremental no traería.
    """

    entity_type = EntityType.INSURANCE_POLICY
    model = InsurancePolicyModel
    provenance_column = "pms_subscription_id"

    async def fetch(self, ctx: SyncContext) -> Sequence[PolicyCandidate]:
        plans: Dict[str, PmsInsurancePlan] = {
            plan.pms_id: plan for plan in await self.adapter.fetch_insurance_plans(None)
        }
        subscriptions = await self.adapter.fetch_insurance_subscriptions(ctx.since)
        logger.debug(f"[pms-sync] Cache de planes: {len(plans)} planes, {len(subscriptions)} suscripciones")

        candidates: List[PolicyCandidate] = [
            PolicyCandidate(subscription=sub, plan=plans.get(sub.plan_pms_id))
            for sub in subscriptions
        ]
        return candidates

    async def _patient_has_policy(self, ctx: SyncContext, patient_id: str) -> bool:
        query = select(func.count()).select_from(InsurancePolicyModel).where(
            InsurancePolicyModel.tenant_id == ctx.tenant_id,
            InsurancePolicyModel.patient_id == patient_id,
        )
        return bool(await ctx.db.scalar(query))

    async def sync_record(self, ctx: SyncContext, record: PolicyCandidate) -> RecordOutcome:
        sub = record.subscription
        patient_id = await self.require_mapping(ctx, EntityType.PATIENT, sub.patient_pms_id)
        if record.plan is None:
            raise MissingDependencyError(INSURANCE_PLAN_DEPENDENCY, sub.plan_pms_id)
        plan = record.plan

        values = {
            "patient_id": patient_id,
            "payer_name": plan.carrier_name,
            "payer_id": plan.payer_id or "",
            "plan_name": plan.group_name,
            "group_number": plan.group_number,
            "member_id": sub.subscriber_id or None,
            "effective_date": sub.date_effective,
            "termination_date": sub.date_terminated,
            "subscriber_relation": map_subscriber_relation(sub.relationship),
        }

        existing = await self.load_mapped(ctx, sub.pms_id)
        create_only = None
        if existing is None:
            # Solo la primera póliza del paciente es primaria
            create_only = {"is_primary": not await self._patient_has_policy(ctx, patient_id)}
        return await self.upsert_mapped(ctx, sub.pms_id, values, create_only=create_only)
