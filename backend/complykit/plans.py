from __future__ import annotations

from dataclasses import dataclass

from complykit.models import PlanType


@dataclass(frozen=True)
class PlanOffer:
    plan_type: str
    name: str
    amount_cents: int
    currency: str = 'eur'
    recurring_interval: str | None = None


PLAN_OFFERS: dict[str, PlanOffer] = {
    PlanType.QUICK_FIX: PlanOffer(PlanType.QUICK_FIX, 'Quick Fix - 1 document', 499),
    PlanType.FULL_COMPLIANCE: PlanOffer(PlanType.FULL_COMPLIANCE, 'Full Compliance - all documents', 2999),
    PlanType.ANNUAL_GUARD: PlanOffer(PlanType.ANNUAL_GUARD, 'Annual Guard - unlimited for 1 year', 4999),
    PlanType.PRO: PlanOffer(PlanType.PRO, 'Pro - unlimited monthly', 1999, recurring_interval='month'),
}


def get_offer(plan_type: str) -> PlanOffer | None:
    return PLAN_OFFERS.get(str(plan_type or '').upper())
