"""
Campaign and plan filtering

Overlap filter, branch/category predicates and the plan extractor used by
the dashboard, calendar and campaign list views. All functions are pure.
"""

import logging
from typing import Iterable, List, Optional, Union

from .date_ranges import (
    end_of_day,
    month_interval,
    parse_iso_date,
    resolve_interval,
    start_of_day,
    year_interval,
)
from .models import Campaign, DateFilter, DateInterval, MarketingPlan, PlanEntry
from .protocols import InvalidRangeError

logger = logging.getLogger(__name__)

ALL = "all"

Window = Union[DateInterval, DateFilter]


def _is_all(value: Optional[str]) -> bool:
    return value is None or value == "" or value == ALL


def matches_branch(campaign: Campaign, branch_id: Optional[str]) -> bool:
    return _is_all(branch_id) or campaign.branch_id == branch_id


def matches_category(campaign: Campaign, category_id: Optional[str]) -> bool:
    return _is_all(category_id) or campaign.category_id == category_id


def campaign_interval(campaign: Campaign) -> Optional[DateInterval]:
    """Campaign span, or None when a date is missing, unparseable or reversed"""
    start = parse_iso_date(campaign.start_date)
    end = parse_iso_date(campaign.end_date)
    if start is None or end is None or start > end:
        return None
    return DateInterval(start=start_of_day(start), end=end_of_day(end))


def overlaps(campaign: Campaign, interval: DateInterval) -> bool:
    """campaign.start <= interval.end and campaign.end >= interval.start"""
    if interval.is_empty:
        return False
    span = campaign_interval(campaign)
    if span is None:
        return False
    return span.start <= interval.end and span.end >= interval.start


def plan_in_interval(plan: MarketingPlan, interval: DateInterval) -> bool:
    scheduled = parse_iso_date(plan.scheduled_date)
    if scheduled is None:
        return False
    return interval.contains(start_of_day(scheduled))


def select_window(date_filter: DateFilter) -> Optional[DateInterval]:
    """Resolve a filter, None when it cannot be resolved"""
    try:
        return resolve_interval(date_filter)
    except InvalidRangeError as e:
        logger.debug(f"Date filter matches nothing: {e}")
        return None


def _as_interval(window: Window) -> Optional[DateInterval]:
    if isinstance(window, DateFilter):
        window = select_window(window)
    if window is None or window.is_empty:
        return None
    return window


def filter_by_branch(campaigns: Iterable[Campaign], branch_id: Optional[str] = ALL) -> List[Campaign]:
    return [c for c in campaigns if matches_branch(c, branch_id)]


def filter_campaigns(
    campaigns: Iterable[Campaign],
    window: Optional[Window] = None,
    branch_id: Optional[str] = ALL,
    category_id: Optional[str] = ALL,
) -> List[Campaign]:
    """
    Campaigns matching the branch/category predicates and, when a window is
    given, overlapping it. An unresolvable window matches nothing.
    """
    selected = [
        c for c in campaigns
        if matches_branch(c, branch_id) and matches_category(c, category_id)
    ]
    if window is None:
        return selected

    interval = _as_interval(window)
    if interval is None:
        return []
    return [c for c in selected if overlaps(c, interval)]


def extract_plans(
    campaigns: Iterable[Campaign],
    window: Optional[Window] = None,
) -> List[PlanEntry]:
    """
    Flatten plans out of campaigns, keeping campaign then plan order.

    With a window only plans scheduled inside it are kept. An unresolvable
    window yields an empty list.
    """
    interval = None
    if window is not None:
        interval = _as_interval(window)
        if interval is None:
            return []

    entries = []
    for campaign in campaigns:
        for plan in campaign.plans:
            if interval is not None and not plan_in_interval(plan, interval):
                continue
            entries.append(PlanEntry(plan=plan, campaign_name=campaign.name, campaign_id=campaign.id))
    return entries


def filter_campaign_list(
    campaigns: Iterable[Campaign],
    branch_id: Optional[str] = ALL,
    category_id: Optional[str] = ALL,
    year: Union[int, str, None] = ALL,
    month: Union[int, str, None] = ALL,
) -> List[Campaign]:
    """
    Campaigns page filter.

    year "all" disables date filtering; month "all" (or no month) covers the
    whole year. Month is zero based.
    """
    if _is_all(year):
        return filter_campaigns(campaigns, None, branch_id, category_id)

    try:
        year = int(year)
        if _is_all(month):
            interval = year_interval(year)
        else:
            interval = month_interval(year, int(month))
    except (ValueError, InvalidRangeError) as e:
        logger.debug(f"Campaign list filter matches nothing: {e}")
        return []
    return filter_campaigns(campaigns, interval, branch_id, category_id)


__all__ = [
    "ALL",
    "matches_branch",
    "matches_category",
    "campaign_interval",
    "overlaps",
    "plan_in_interval",
    "select_window",
    "filter_by_branch",
    "filter_campaigns",
    "extract_plans",
    "filter_campaign_list",
]
