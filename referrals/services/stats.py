"""
Referral statistics and team KPIs.

Counts are computed with grouped/aggregated queries over the referral
table.  All windows are half-open ``[start, end)`` ranges aligned to
calendar days in the current time zone, and every ratio is guarded so
that the results are always finite numbers.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Optional

from django.conf import settings
from django.core.cache import cache
from django.db.models import Count, Q, QuerySet
from django.db.models.functions import TruncDate
from django.utils import timezone
from rest_framework.exceptions import ValidationError

from referrals.models import Referral, User
from referrals.services.pipeline import day_start, parse_day

RANGES = ('week', 'month', 'quarter', 'custom')
INFLOW_TIMEFRAMES = ('week', 'month')
ACTIVE_STATUSES = (Referral.STATUS_PENDING, Referral.STATUS_CONTACTED, Referral.STATUS_INTERVIEWING)
IN_PROGRESS_STATUSES = (Referral.STATUS_CONTACTED, Referral.STATUS_INTERVIEWING)

KPI_CACHE_KEY = 'kpi:team'


@dataclass(frozen=True)
class Window:
    start: datetime
    end: datetime
    range: str

    def as_dict(self) -> dict:
        return {'start': self.start.isoformat(), 'end': self.end.isoformat(), 'range': self.range}

    @property
    def first_day(self) -> date:
        return timezone.localtime(self.start).date()

    @property
    def last_day(self) -> date:
        return timezone.localtime(self.end).date() - timedelta(days=1)


def add_months(d: date, months: int) -> date:
    """Shift the first day of a month by ``months`` months."""
    index = d.year * 12 + (d.month - 1) + months
    return date(index // 12, index % 12 + 1, 1)


def _today(now: Optional[datetime]) -> date:
    return timezone.localtime(now or timezone.now()).date()


def resolve_window(range_: Optional[str], from_value=None, to_value=None, now: Optional[datetime] = None) -> Window:
    """Resolve a range selector to a concrete window.

    ``week`` is the ISO week (Monday first) containing ``now``, ``month``
    and ``quarter`` the calendar month/quarter.  ``custom`` needs both
    bounds; ``to_value`` is inclusive.  Bad input raises a
    ``ValidationError`` rather than being ignored.
    """
    range_ = (range_ or 'week').strip().lower()
    today = _today(now)
    if range_ == 'week':
        start = today - timedelta(days=today.weekday())
        end = start + timedelta(days=7)
    elif range_ == 'month':
        start = today.replace(day=1)
        end = add_months(start, 1)
    elif range_ == 'quarter':
        start = date(today.year, (today.month - 1) // 3 * 3 + 1, 1)
        end = add_months(start, 3)
    elif range_ == 'custom':
        errors = {}
        first = parse_day(from_value)
        last = parse_day(to_value)
        if not from_value:
            errors['fromDate'] = ['fromDate is required for a custom range']
        elif first is None:
            errors['fromDate'] = ['fromDate must be a valid date (YYYY-MM-DD)']
        if not to_value:
            errors['toDate'] = ['toDate is required for a custom range']
        elif last is None:
            errors['toDate'] = ['toDate must be a valid date (YYYY-MM-DD)']
        if errors:
            raise ValidationError(errors)
        if first > last:
            raise ValidationError({'fromDate': ['fromDate must not be after toDate']})
        start, end = first, last + timedelta(days=1)
    else:
        raise ValidationError({'range': [f"range must be one of: {', '.join(RANGES)}"]})
    return Window(day_start(start), day_start(end), range_)


def previous_window(window: Window) -> Window:
    """The window of the same kind immediately before ``window``."""
    first = window.first_day
    if window.range == 'week':
        start = first - timedelta(days=7)
    elif window.range == 'month':
        start = add_months(first, -1)
    elif window.range == 'quarter':
        start = add_months(first, -3)
    else:
        start = first - (window.last_day - first + timedelta(days=1))
    return Window(day_start(start), window.start, window.range)


def month_window(first_of_month: date) -> Window:
    return Window(day_start(first_of_month), day_start(add_months(first_of_month, 1)), 'month')


# ---------------------------------------------------------------------------
# Derived metrics
# ---------------------------------------------------------------------------

def conversion_rate(hired: int, total: int) -> float:
    if not total:
        return 0.0
    return round(hired / total * 100, 1)


def percentage_change(current: float, previous: float) -> float:
    if not previous:
        return 0.0 if not current else 100.0
    return round((current - previous) / previous * 100, 1)


def created_in(window: Window, qs: Optional[QuerySet] = None) -> QuerySet:
    qs = Referral.objects.all() if qs is None else qs
    return qs.filter(created_at__gte=window.start, created_at__lt=window.end)


def time_to_hire(window: Window) -> float:
    """Average days from submission to hire for referrals hired in ``window``."""
    rows = Referral.objects.filter(
        status=Referral.STATUS_HIRED, updated_at__gte=window.start, updated_at__lt=window.end,
    ).values_list('created_at', 'updated_at')
    durations = [(updated - created).total_seconds() / 86400 for created, updated in rows]
    if not durations:
        return 0.0
    return round(sum(durations) / len(durations), 1)


def window_conversion(window: Window) -> float:
    agg = created_in(window).aggregate(
        total=Count('id'),
        hired=Count('id', filter=Q(status=Referral.STATUS_HIRED)),
    )
    return conversion_rate(agg['hired'], agg['total'])


# ---------------------------------------------------------------------------
# Clinician statistics
# ---------------------------------------------------------------------------

def referral_stats(user: User, window: Window) -> dict:
    """Status counts of ``user``'s own referrals created in ``window``."""
    agg = created_in(window, Referral.objects.filter(referrer=user)).aggregate(
        total=Count('id'),
        pending=Count('id', filter=Q(status=Referral.STATUS_PENDING)),
        in_progress=Count('id', filter=Q(status__in=IN_PROGRESS_STATUSES)),
        completed=Count('id', filter=Q(status=Referral.STATUS_HIRED)),
        rejected=Count('id', filter=Q(status=Referral.STATUS_REJECTED)),
    )
    return {
        'totalReferrals': agg['total'],
        'pendingReferrals': agg['pending'],
        'inProgressReferrals': agg['in_progress'],
        'completedReferrals': agg['completed'],
        'rejectedReferrals': agg['rejected'],
    }


# ---------------------------------------------------------------------------
# Team KPIs
# ---------------------------------------------------------------------------

def kpis(now: Optional[datetime] = None) -> dict:
    current = resolve_window('month', now=now)
    months = max(1, settings.KPI_TREND_MONTHS)
    trend_windows = [month_window(add_months(current.first_day, -offset)) for offset in range(months - 1, -1, -1)]

    conversion_trend = [
        {'date': w.first_day.strftime('%Y-%m'), 'value': window_conversion(w)} for w in trend_windows
    ]
    hire_trend = [
        {'date': w.first_day.strftime('%Y-%m'), 'value': time_to_hire(w)} for w in trend_windows
    ]
    totals = Referral.objects.aggregate(
        active=Count('id', filter=Q(status__in=ACTIVE_STATUSES)),
        placements=Count('id', filter=Q(status=Referral.STATUS_HIRED)),
    )
    return {
        'conversionRate': {
            'current': conversion_trend[-1]['value'],
            'target': settings.KPI_CONVERSION_TARGET,
            'trend': conversion_trend,
        },
        'timeToHire': {
            'current': hire_trend[-1]['value'],
            'target': settings.KPI_TIME_TO_HIRE_TARGET,
            'trend': hire_trend,
        },
        'activeRequisitions': totals['active'],
        'totalPlacements': totals['placements'],
    }


def cached_kpis() -> dict:
    payload = cache.get(KPI_CACHE_KEY)
    if payload is None:
        payload = kpis()
        cache.set(KPI_CACHE_KEY, payload, settings.KPI_CACHE_SECONDS)
    return payload


def invalidate_kpis() -> None:
    cache.delete(KPI_CACHE_KEY)


# ---------------------------------------------------------------------------
# Inflow
# ---------------------------------------------------------------------------

def inflow(timeframe: Optional[str], role: Optional[str] = None, now: Optional[datetime] = None) -> dict:
    """Referral volume for the current and previous period plus a daily series."""
    timeframe = (timeframe or 'week').strip().lower()
    if timeframe not in INFLOW_TIMEFRAMES:
        raise ValidationError({'timeframe': [f"timeframe must be one of: {', '.join(INFLOW_TIMEFRAMES)}"]})
    role = (role or '').strip().lower()
    qs = Referral.objects.all()
    if role and role != 'all':
        if role not in dict(User.ROLE_CHOICES):
            raise ValidationError({'role': ['unknown role']})
        qs = qs.filter(referrer__role=role)

    current = resolve_window(timeframe, now=now)
    previous = previous_window(current)
    current_total = created_in(current, qs).count()
    previous_total = created_in(previous, qs).count()

    per_day = {
        row['day']: row['count']
        for row in created_in(current, qs)
        .annotate(day=TruncDate('created_at'))
        .values('day')
        .annotate(count=Count('id'))
        .order_by('day')
    }
    series = []
    day = current.first_day
    while day <= current.last_day:
        series.append({'date': day.isoformat(), 'count': per_day.get(day, 0)})
        day += timedelta(days=1)

    return {
        'currentPeriod': {
            'startDate': current.first_day.isoformat(),
            'endDate': current.last_day.isoformat(),
            'total': current_total,
        },
        'previousPeriod': {
            'startDate': previous.first_day.isoformat(),
            'endDate': previous.last_day.isoformat(),
            'total': previous_total,
        },
        'percentageChange': percentage_change(current_total, previous_total),
        'timeSeries': series,
    }
