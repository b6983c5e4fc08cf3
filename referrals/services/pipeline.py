"""
Recruiter pipeline board.

Groups referrals into the five fixed stages after applying the board
filters.  Every stage is always present in the result, even when empty,
and rows carrying a status outside the known stages are shown under
``pending`` rather than dropped.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Optional

from django.db.models import Count, QuerySet
from django.utils import timezone
from django.utils.dateparse import parse_date, parse_datetime

from referrals.models import Referral

STAGES: tuple[str, ...] = tuple(value for value, _ in Referral.STATUS_CHOICES)
DEFAULT_STAGE = Referral.STATUS_PENDING

SORT_FIELDS = {
    'lastActivity': 'updated_at',
    'name': 'candidate_name',
    'role': 'position',
}
DEFAULT_SORT = 'lastActivity'
DEFAULT_DIRECTION = 'desc'


@dataclass(frozen=True)
class PipelineFilters:
    role: Optional[str] = None
    department: Optional[str] = None
    source: Optional[str] = None
    from_date: Optional[date] = None
    to_date: Optional[date] = None
    recruiter_id: Optional[int] = None
    sort_by: str = DEFAULT_SORT
    sort_direction: str = DEFAULT_DIRECTION


def _clean(value) -> Optional[str]:
    value = (value or '').strip()
    if not value or value.lower() == 'all':
        return None
    return value


def _user_id(value) -> Optional[int]:
    value = _clean(value)
    if value is None or not value.isdigit():
        return None
    return int(value)


def parse_day(value) -> Optional[date]:
    """Parse ``YYYY-MM-DD`` (or an ISO datetime); ``None`` if unparseable."""
    value = (value or '').strip()
    if not value:
        return None
    try:
        parsed = parse_date(value)
        if parsed is None:
            dt = parse_datetime(value)
            parsed = dt.date() if dt else None
    except ValueError:
        # well formed but not a calendar date, e.g. 2024-02-30
        return None
    return parsed


def day_start(d: date) -> datetime:
    return timezone.make_aware(datetime.combine(d, time.min))


def filters_from_params(params) -> PipelineFilters:
    """Build filters from query parameters, dropping anything unusable."""
    sort_by = params.get('sortBy') or DEFAULT_SORT
    if sort_by not in SORT_FIELDS:
        sort_by = DEFAULT_SORT
    direction = (params.get('sortDirection') or params.get('sortOrder') or DEFAULT_DIRECTION).lower()
    if direction not in ('asc', 'desc'):
        direction = DEFAULT_DIRECTION
    return PipelineFilters(
        role=_clean(params.get('role')),
        department=_clean(params.get('department')),
        source=_clean(params.get('source')),
        from_date=parse_day(params.get('fromDate')),
        to_date=parse_day(params.get('toDate')),
        recruiter_id=_user_id(params.get('recruiter')),
        sort_by=sort_by,
        sort_direction=direction,
    )


def filtered_referrals(filters: PipelineFilters) -> QuerySet:
    qs = Referral.objects.all()
    if filters.role:
        qs = qs.filter(position__icontains=filters.role)
    if filters.department:
        qs = qs.filter(department=filters.department)
    if filters.source:
        qs = qs.filter(source__icontains=filters.source)
    if filters.recruiter_id:
        qs = qs.filter(recruiter_id=filters.recruiter_id)
    if filters.from_date:
        qs = qs.filter(created_at__gte=day_start(filters.from_date))
    if filters.to_date:
        qs = qs.filter(created_at__lt=day_start(filters.to_date + timedelta(days=1)))

    field = SORT_FIELDS[filters.sort_by]
    if filters.sort_direction == 'desc':
        return qs.order_by(f'-{field}', '-id')
    return qs.order_by(field, 'id')


def stage_of(referral: Referral) -> str:
    return referral.status if referral.status in STAGES else DEFAULT_STAGE


def format_candidate(r: Referral) -> dict:
    return {
        'id': r.id,
        'name': r.candidate_name,
        'email': r.candidate_email,
        'role': r.position,
        'department': r.department,
        'source': r.source,
        'status': stage_of(r),
        'lastActivity': r.updated_at.isoformat(),
        'createdAt': r.created_at.isoformat(),
        'nextSteps': r.next_steps,
        'notes': r.notes,
    }


def build_pipeline(filters: PipelineFilters) -> dict:
    """Return ``{'total', 'pipeline': {stage: {'stage', 'count', 'candidates'}}}``."""
    pipeline = {stage: {'stage': stage, 'count': 0, 'candidates': []} for stage in STAGES}
    total = 0
    for referral in filtered_referrals(filters):
        bucket = pipeline[stage_of(referral)]
        bucket['candidates'].append(format_candidate(referral))
        bucket['count'] += 1
        total += 1
    return {'total': total, 'pipeline': pipeline}


def status_breakdown(filters: PipelineFilters) -> dict:
    """Per-stage counts with their share of the total, in stage order."""
    counts = dict.fromkeys(STAGES, 0)
    rows = filtered_referrals(filters).order_by().values('status').annotate(n=Count('id'))
    for row in rows:
        stage = row['status'] if row['status'] in STAGES else DEFAULT_STAGE
        counts[stage] += row['n']
    total = sum(counts.values())
    return {
        'total': total,
        'statusBreakdown': [
            {
                'status': stage,
                'count': counts[stage],
                'percentage': round(counts[stage] / total * 100, 1) if total else 0,
            }
            for stage in STAGES
        ],
    }
