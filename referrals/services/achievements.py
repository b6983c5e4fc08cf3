"""
Clinician achievements.

Every achievement type measures one score over the clinician's own
referrals, and an achievement completes once that score reaches its
``required_score``.  Completion is permanent even if the score later
drops (for example when a new month starts).  Scores are recomputed
whenever one of the user's referrals is submitted or changes stage.
"""
from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Optional

from django.utils import timezone

from referrals.models import Achievement, AchievementProgress, Alert, Referral, User, UserAchievement
from referrals.services.notifications import notify
from referrals.services.stats import created_in, resolve_window

logger = logging.getLogger(__name__)

SPEED_HERO_DAYS = 14
INTERVIEW_OR_BETTER = (Referral.STATUS_INTERVIEWING, Referral.STATUS_HIRED)


def _own(user: User):
    return Referral.objects.filter(referrer=user)


def _team_player(user, now):
    return _own(user).count()


def _quality_rating(user, now):
    return _own(user).filter(status__in=INTERVIEW_OR_BETTER).count()


def _career_milestone(user, now):
    return _own(user).filter(status=Referral.STATUS_HIRED).count()


def _monthly_target(user, now):
    return created_in(resolve_window('month', now=now), _own(user)).count()


def _referral_streak(user, now):
    """Hires in a row among the most recently decided referrals."""
    decided = (
        _own(user)
        .filter(status__in=(Referral.STATUS_HIRED, Referral.STATUS_REJECTED))
        .order_by('-updated_at', '-id')
        .values_list('status', flat=True)
    )
    streak = 0
    for status in decided:
        if status != Referral.STATUS_HIRED:
            break
        streak += 1
    return streak


def _speed_hero(user, now):
    limit = timedelta(days=SPEED_HERO_DAYS)
    rows = _own(user).filter(status=Referral.STATUS_HIRED).values_list('created_at', 'updated_at')
    return sum(1 for created, updated in rows if updated - created <= limit)


SCORERS = {
    Achievement.TYPE_TEAM_PLAYER: _team_player,
    Achievement.TYPE_QUALITY_RATING: _quality_rating,
    Achievement.TYPE_CAREER_MILESTONE: _career_milestone,
    Achievement.TYPE_MONTHLY_TARGET: _monthly_target,
    Achievement.TYPE_REFERRAL_STREAK: _referral_streak,
    Achievement.TYPE_SPEED_HERO: _speed_hero,
}


def score_for(user: User, type_: str, now: Optional[datetime] = None) -> int:
    return SCORERS[type_](user, now or timezone.now())


def refresh_achievements(user: User, now: Optional[datetime] = None) -> list[UserAchievement]:
    """Recompute ``user``'s progress and return the achievements completed by this call."""
    now = now or timezone.now()
    existing = {ua.achievement_id: ua for ua in UserAchievement.objects.filter(user=user)}
    scores: dict[str, int] = {}
    completed = []
    for achievement in Achievement.objects.order_by('id'):
        if achievement.type not in scores:
            scores[achievement.type] = score_for(user, achievement.type, now)
        score = scores[achievement.type]
        progress = min(score, achievement.required_score)
        ua = existing.get(achievement.id)
        if ua is None:
            if not progress:
                continue
            ua = UserAchievement(user=user, achievement=achievement)
        elif ua.progress == progress:
            continue
        ua.progress = progress
        if not ua.is_completed and progress >= achievement.required_score:
            ua.is_completed = True
            ua.completed_at = now
            ua.current_tier = achievement.tier
            completed.append(ua)
        ua.save()
        AchievementProgress.objects.create(
            user=user,
            achievement=achievement,
            progress_snapshot={
                'score': score,
                'progress': progress,
                'requiredScore': achievement.required_score,
                'isCompleted': ua.is_completed,
                'at': now.isoformat(),
            },
        )

    for ua in completed:
        notify(user, Alert.TYPE_SYSTEM, f'Achievement unlocked: {ua.achievement.name}')
    if completed:
        logger.info(
            'achievements completed',
            extra={'context': {'userId': user.pk, 'achievements': [ua.achievement_id for ua in completed]}},
        )
    return completed


def format_achievement(achievement: Achievement, ua: Optional[UserAchievement] = None) -> dict:
    return {
        'id': achievement.id,
        'name': achievement.name,
        'description': achievement.description,
        'type': achievement.type,
        'tier': achievement.tier,
        'progress': ua.progress if ua else 0,
        'requiredScore': achievement.required_score,
        'isCompleted': bool(ua and ua.is_completed),
        'completedAt': ua.completed_at.isoformat() if ua and ua.completed_at else None,
        'rewardAmount': achievement.reward_amount,
        'iconUrl': achievement.icon_url,
    }


def list_achievements(user: User) -> list[dict]:
    held = {ua.achievement_id: ua for ua in UserAchievement.objects.filter(user=user)}
    return [format_achievement(a, held.get(a.id)) for a in Achievement.objects.order_by('id')]
