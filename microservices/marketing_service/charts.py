"""
Chart Series Builder

Per-campaign revenue/spend pairs and per-platform plan counts.
"""

from typing import Dict, Iterable, List

from .metrics import amount_or_zero
from .models import Campaign, FinancialPoint, PlanEntry, PlatformSlice


def short_label(name: str) -> str:
    """First two whitespace separated tokens of a campaign name"""
    return " ".join((name or "").split()[:2])


def financial_series(campaigns: Iterable[Campaign], entries: List[PlanEntry]) -> List[FinancialPoint]:
    """
    One point per campaign; spend only sums that campaign's plans present
    in the (already window filtered) plan entries.
    """
    spend_by_campaign: Dict[str, float] = {}
    for entry in entries:
        spend_by_campaign[entry.campaign_id] = (
            spend_by_campaign.get(entry.campaign_id, 0.0) + amount_or_zero(entry.plan.cost)
        )

    return [
        FinancialPoint(
            label=short_label(campaign.name),
            revenue=amount_or_zero(campaign.actual_revenue),
            spend=spend_by_campaign.get(campaign.id, 0.0),
            campaign_id=campaign.id,
        )
        for campaign in campaigns
    ]


def platform_distribution(entries: Iterable[PlanEntry]) -> Dict[str, int]:
    """
    Count plans per platform label. A plan listing several platforms adds
    one to each of them.
    """
    counts: Dict[str, int] = {}
    for entry in entries:
        for platform in entry.plan.platform:
            counts[platform] = counts.get(platform, 0) + 1
    return counts


def platform_series(entries: Iterable[PlanEntry]) -> List[PlatformSlice]:
    """Platform distribution as chart slices, in first-seen order"""
    return [
        PlatformSlice(name=name, value=value)
        for name, value in platform_distribution(entries).items()
    ]


__all__ = [
    "short_label",
    "financial_series",
    "platform_distribution",
    "platform_series",
]
