"""
Year Event List Builder and month grid

Builds the calendar list view (campaign spans and plans of one year in a
single date-sorted sequence) and the per-day month grid.
"""

from datetime import date, timedelta
from typing import Iterable, List

from .date_ranges import parse_iso_date, year_interval, month_interval
from .filters import campaign_interval, overlaps
from .models import (
    CalendarDay,
    CalendarEvent,
    CalendarMonth,
    Campaign,
    CampaignDayMarker,
    EventKind,
    PlanEntry,
)

PLATFORM_SEPARATOR = ", "
SUBTITLE_SEPARATOR = " • "


def campaign_subtitle(campaign: Campaign) -> str:
    return f"Active: {campaign.start_date} to {campaign.end_date}"


def plan_subtitle(campaign: Campaign, platforms: List[str]) -> str:
    return f"{campaign.name}{SUBTITLE_SEPARATOR}{PLATFORM_SEPARATOR.join(platforms)}"


def build_year_events(campaigns: Iterable[Campaign], year: int) -> List[CalendarEvent]:
    """
    Build the sorted event list of a year.

    Campaigns overlapping the year are anchored to max(start, Jan 1) and
    plans to their scheduled date. Campaign entries are enumerated first,
    then plans; the stable sort only reorders them by date.
    """
    campaigns = list(campaigns)
    interval = year_interval(year)
    year_start = interval.start.date()
    events: List[CalendarEvent] = []

    for campaign in campaigns:
        if not overlaps(campaign, interval):
            continue
        start = parse_iso_date(campaign.start_date)
        events.append(CalendarEvent(
            sort_date=max(start, year_start),
            kind=EventKind.CAMPAIGN,
            title=campaign.name,
            subtitle=campaign_subtitle(campaign),
            status=campaign.status.value,
            id=campaign.id,
            campaign_id=campaign.id,
        ))

    for campaign in campaigns:
        for plan in campaign.plans:
            scheduled = parse_iso_date(plan.scheduled_date)
            if scheduled is None or scheduled.year != year:
                continue
            events.append(CalendarEvent(
                sort_date=scheduled,
                kind=EventKind.PLAN,
                title=plan.title,
                subtitle=plan_subtitle(campaign, plan.platform),
                status=plan.status.value,
                id=plan.id,
                campaign_id=campaign.id,
            ))

    # list.sort is stable
    events.sort(key=lambda event: event.sort_date)
    return events


def campaigns_active_on(campaigns: Iterable[Campaign], day: date) -> List[Campaign]:
    active = []
    for campaign in campaigns:
        span = campaign_interval(campaign)
        if span is not None and span.start.date() <= day <= span.end.date():
            active.append(campaign)
    return active


def plans_on(campaigns: Iterable[Campaign], day: date) -> List[PlanEntry]:
    entries = []
    for campaign in campaigns:
        for plan in campaign.plans:
            if parse_iso_date(plan.scheduled_date) == day:
                entries.append(PlanEntry(plan=plan, campaign_name=campaign.name, campaign_id=campaign.id))
    return entries


def month_padding(year: int, month: int) -> int:
    """Weekday of the 1st with Sunday = 0; month is zero based"""
    return (date(year, month + 1, 1).weekday() + 1) % 7


def build_month_grid(campaigns: Iterable[Campaign], year: int, month: int) -> CalendarMonth:
    """
    Month grid with the campaigns active and the plans scheduled on each day.

    Raises:
        InvalidRangeError: month or year out of range
    """
    campaigns = list(campaigns)
    interval = month_interval(year, month)
    first = interval.start.date()
    last = interval.end.date()
    in_month = [c for c in campaigns if overlaps(c, interval)]

    days = []
    day = first
    while day <= last:
        markers = [
            CampaignDayMarker(
                campaign_id=c.id,
                name=c.name,
                status=c.status,
                is_campaign_start=parse_iso_date(c.start_date) == day,
                is_campaign_end=parse_iso_date(c.end_date) == day,
            )
            for c in campaigns_active_on(in_month, day)
        ]
        days.append(CalendarDay(
            day=day.day,
            day_date=day,
            campaigns=markers,
            plans=plans_on(campaigns, day),
        ))
        day += timedelta(days=1)

    return CalendarMonth(
        year=year,
        month=month,
        padding=month_padding(year, month),
        days=days,
    )


__all__ = [
    "build_year_events",
    "campaign_subtitle",
    "plan_subtitle",
    "campaigns_active_on",
    "plans_on",
    "month_padding",
    "build_month_grid",
]
