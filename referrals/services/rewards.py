from django.db.models import Count, Q, Sum

from referrals.models import Reward, User
from referrals.services.achievements import list_achievements


def format_reward(r: Reward) -> dict:
    return {
        'id': r.id,
        'referralId': r.referral_id,
        'amount': r.amount,
        'status': r.status,
        'createdAt': r.created_at.isoformat(),
    }


def list_rewards(user: User) -> list[dict]:
    return [format_reward(r) for r in Reward.objects.filter(user=user).order_by('-created_at', '-id')]


def rewards_snapshot(user: User, *, recent: int = 5) -> dict:
    qs = Reward.objects.filter(user=user)
    agg = qs.aggregate(
        pending_count=Count('id', filter=Q(status=Reward.STATUS_PENDING)),
        pending_amount=Sum('amount', filter=Q(status=Reward.STATUS_PENDING)),
        paid_count=Count('id', filter=Q(status=Reward.STATUS_PAID)),
        paid_amount=Sum('amount', filter=Q(status=Reward.STATUS_PAID)),
    )
    paid_amount = agg['paid_amount'] or 0
    return {
        'pending': {'count': agg['pending_count'], 'amount': agg['pending_amount'] or 0},
        'paid': {'count': agg['paid_count'], 'amount': paid_amount},
        'totalEarned': paid_amount,
        'recentPayments': [format_reward(r) for r in qs.order_by('-created_at', '-id')[:recent]],
        'achievements': list_achievements(user),
    }
