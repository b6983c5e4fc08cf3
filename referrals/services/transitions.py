"""
Stage transitions triggered from the pipeline board.

Any stage may move to any other stage, backwards included.  There is no
optimistic-concurrency check: concurrent moves of the same referral are
resolved by whichever write commits last.  Cache invalidation and the
broadcast run only after the transaction commits.
"""
from __future__ import annotations

import logging

from django.db import transaction
from django.utils import timezone
from rest_framework.exceptions import NotFound, ValidationError

from referrals.models import Alert, Referral, User
from referrals.realtime.broadcast import publish
from referrals.services.achievements import refresh_achievements
from referrals.services.notifications import notify
from referrals.services.pipeline import STAGES
from referrals.services.stats import invalidate_kpis

logger = logging.getLogger(__name__)


def validate_stage(value) -> str:
    stage = (value or '').strip() if isinstance(value, str) else ''
    if stage not in STAGES:
        raise ValidationError({'newStage': [f"newStage must be one of: {', '.join(STAGES)}"]})
    return stage


def _after_commit(event: dict) -> None:
    """Drop the KPI cache and broadcast ``event`` once the move is durable.

    Neither step can undo the committed write, so failures are logged and
    the caller still gets the saved referral.
    """
    try:
        invalidate_kpis()
    except Exception:
        logger.exception('kpi cache invalidation failed', extra={'context': {'referralId': event['referralId']}})
    try:
        publish(event)
    except Exception:
        logger.exception('pipeline broadcast failed', extra={'context': {'referralId': event['referralId']}})


def update_stage(user: User, candidate_id: int, new_stage: str) -> Referral:
    """Move a referral to ``new_stage`` and return the saved record.

    The caller's role is checked by the view; this function validates the
    target, writes the change and fans out the side effects.
    """
    new_stage = validate_stage(new_stage)
    with transaction.atomic():
        referral = Referral.objects.select_related('referrer').filter(id=candidate_id).first()
        if referral is None:
            raise NotFound('referral not found')
        old_stage = referral.status
        now = timezone.now()
        referral.status = new_stage
        referral.recruiter = user
        referral.record_action(
            'stage_change',
            f'{old_stage} -> {new_stage} by {user.display_name}',
            at=now,
        )
        referral.save(update_fields=['status', 'recruiter', 'updated_at', 'action_history'])
        if old_stage != new_stage:
            notify(
                referral.referrer,
                Alert.TYPE_PIPELINE_UPDATE,
                f'{referral.candidate_name} moved from {old_stage} to {new_stage}',
                referral=referral,
            )
            refresh_achievements(referral.referrer, now=now)
        event = {
            'type': 'pipeline.updated',
            'referralId': referral.id,
            'from': old_stage,
            'to': new_stage,
            'ts': now.isoformat(),
        }
        transaction.on_commit(lambda: _after_commit(event))

    logger.info(
        'referral stage updated',
        extra={'context': {'referralId': referral.id, 'from': old_stage, 'to': new_stage, 'userId': user.pk}},
    )
    return referral
