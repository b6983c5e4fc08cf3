from typing import Iterable, Optional

from django.shortcuts import get_object_or_404
from django.utils import timezone

from referrals.models import Alert, Referral, User


def notify(user: User, type_: str, message: str, *, referral: Optional[Referral] = None) -> Alert:
    return Alert.objects.create(user=user, type=type_, message=message, related_referral=referral)


def notify_many(users: Iterable[User], type_: str, message: str, *, referral: Optional[Referral] = None) -> int:
    alerts = [Alert(user=u, type=type_, message=message, related_referral=referral) for u in users]
    Alert.objects.bulk_create(alerts)
    return len(alerts)


def format_alert(a: Alert) -> dict:
    return {
        'id': a.id,
        'type': a.type,
        'message': a.message,
        'read': a.read,
        'referralId': a.related_referral_id,
        'createdAt': a.created_at.isoformat(),
        'readAt': a.read_at.isoformat() if a.read_at else None,
    }


def list_alerts(user: User, *, unread_only: bool = False, limit: int = 50) -> list[dict]:
    qs = Alert.objects.filter(user=user)
    if unread_only:
        qs = qs.filter(read=False)
    return [format_alert(a) for a in qs.order_by('-created_at', '-id')[:limit]]


def mark_read(user: User, alert_id: int) -> Alert:
    # someone else's alert is reported as missing
    alert = get_object_or_404(Alert, id=alert_id, user=user)
    if not alert.read:
        alert.read = True
        alert.read_at = timezone.now()
        alert.save(update_fields=['read', 'read_at'])
    return alert
