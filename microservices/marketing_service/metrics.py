"""
KPI Aggregator

Reduces the filtered campaign and plan lists to the dashboard KPIs.

Revenue attributes a campaign's full actual revenue to any window the
campaign overlaps. Spend only counts plans scheduled inside the window.
"""

import math
from typing import Iterable, List

from .models import Campaign, DashboardKPIs, KPIMetric, PlanEntry, PlanStatus

CURRENCY = "RM"

REVENUE_LABEL = "Revenue (Campaigns)"
SPEND_LABEL = "Marketing Spend"
ACTIVE_PLANS_LABEL = "Active Plans"
PENDING_TASKS_LABEL = "Pending Tasks"


def amount_or_zero(value) -> float:
    if value is None:
        return 0.0
    try:
        amount = float(value)
    except (TypeError, ValueError):
        return 0.0
    return amount if math.isfinite(amount) else 0.0


def format_amount(amount: float) -> str:
    """Thousands separators, up to three decimals, no trailing zeros"""
    text = f"{amount_or_zero(amount):,.3f}".rstrip("0").rstrip(".")
    return "0" if text in ("-0", "") else text


def format_currency(amount: float) -> str:
    return f"{CURRENCY} {format_amount(amount)}"


def total_revenue(campaigns: Iterable[Campaign]) -> float:
    return sum((amount_or_zero(c.actual_revenue) for c in campaigns), 0.0)


def total_spend(entries: Iterable[PlanEntry]) -> float:
    return sum((amount_or_zero(e.plan.cost) for e in entries), 0.0)


def active_plans(entries: Iterable[PlanEntry]) -> List[PlanEntry]:
    return [e for e in entries if e.plan.status != PlanStatus.DRAFT]


def pending_plans(entries: Iterable[PlanEntry]) -> List[PlanEntry]:
    return [e for e in entries if e.plan.status != PlanStatus.PUBLISHED]


def build_kpis(campaigns: List[Campaign], entries: List[PlanEntry]) -> DashboardKPIs:
    """
    Build the four dashboard KPIs.

    Args:
        campaigns: branch-filtered campaigns overlapping the window
        entries: plans scheduled inside the window

    Returns:
        DashboardKPIs; only the plan KPIs carry drill-down items
    """
    revenue = total_revenue(campaigns)
    spend = total_spend(entries)
    active = active_plans(entries)
    pending = pending_plans(entries)

    return DashboardKPIs(
        revenue=KPIMetric(
            label=REVENUE_LABEL,
            value=revenue,
            display_value=format_currency(revenue),
        ),
        spend=KPIMetric(
            label=SPEND_LABEL,
            value=spend,
            display_value=format_currency(spend),
        ),
        active_plans=KPIMetric(
            label=ACTIVE_PLANS_LABEL,
            value=len(active),
            display_value=str(len(active)),
            clickable=True,
            items=active,
        ),
        pending_tasks=KPIMetric(
            label=PENDING_TASKS_LABEL,
            value=len(pending),
            display_value=str(len(pending)),
            clickable=True,
            items=pending,
        ),
    )


__all__ = [
    "CURRENCY",
    "amount_or_zero",
    "format_amount",
    "format_currency",
    "total_revenue",
    "total_spend",
    "active_plans",
    "pending_plans",
    "build_kpis",
]
