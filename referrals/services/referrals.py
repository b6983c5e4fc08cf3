import logging

from django.db import transaction
from rest_framework.exceptions import NotFound, PermissionDenied

from referrals.models import Alert, Referral, User
from referrals.permissions import PIPELINE_ROLES
from referrals.services.achievements import refresh_achievements
from referrals.services.notifications import notify_many
from referrals.services.pipeline import stage_of
from referrals.services.stats import invalidate_kpis

logger = logging.getLogger(__name__)

# Fields the submitting clinician may change after creation.
OWNER_FIELDS = (
    'candidate_phone', 'department', 'experience', 'notes',
    'resume_url', 'skill_tags', 'social_links', 'source',
)
# Additional fields reserved for recruiters and leadership.
STAFF_FIELDS = ('recruiter_notes', 'next_steps', 'position')


def _is_staff(user: User) -> bool:
    return getattr(user, 'role', '') in PIPELINE_ROLES


def format_referral(r: Referral, *, for_staff: bool = False) -> dict:
    data = {
        'id': r.id,
        'referrerId': r.referrer_id,
        'candidateName': r.candidate_name,
        'candidateEmail': r.candidate_email,
        'candidatePhone': r.candidate_phone,
        'position': r.position,
        'department': r.department,
        'experience': r.experience,
        'status': stage_of(r),
        'notes': r.notes,
        'resumeUrl': r.resume_url,
        'skillTags': list(r.skill_tags or []),
        'socialLinks': dict(r.social_links or {}),
        'source': r.source,
        'nextSteps': r.next_steps,
        'actionHistory': list(r.action_history or []),
        'createdAt': r.created_at.isoformat(),
        'updatedAt': r.updated_at.isoformat(),
    }
    if for_staff:
        data['recruiterNotes'] = r.recruiter_notes
        data['recruiterId'] = r.recruiter_id
        data['referrerName'] = r.referrer.display_name if r.referrer_id else None
    return data


def list_own(user: User) -> list[dict]:
    qs = Referral.objects.filter(referrer=user).order_by('-created_at', '-id')
    return [format_referral(r) for r in qs]


def get_for_user(user: User, referral_id: int) -> Referral:
    """Fetch a referral the user may see; others' referrals look missing."""
    referral = Referral.objects.select_related('referrer').filter(id=referral_id).first()
    if referral is None or not (_is_staff(user) or referral.referrer_id == user.pk):
        raise NotFound('referral not found')
    return referral


def _drop_kpis() -> None:
    try:
        invalidate_kpis()
    except Exception:
        logger.exception('kpi cache invalidation failed')


def create_referral(user: User, data: dict) -> Referral:
    with transaction.atomic():
        referral = Referral(referrer=user, **data)
        referral.record_action('submitted', f'Referred by {user.display_name}', at=referral.created_at)
        referral.save()
        recruiters = User.objects.filter(role=User.ROLE_RECRUITER, is_active=True)
        notify_many(
            recruiters,
            Alert.TYPE_NEW_REFERRAL,
            f'New referral: {referral.candidate_name} for {referral.position}',
            referral=referral,
        )
        refresh_achievements(user)
        transaction.on_commit(_drop_kpis)
    return referral


def update_referral(user: User, referral: Referral, changes: dict) -> Referral:
    """Apply ``changes`` after checking which fields the caller may edit."""
    allowed = set(OWNER_FIELDS)
    if _is_staff(user):
        allowed |= set(STAFF_FIELDS)
    elif referral.referrer_id != user.pk:
        raise NotFound('referral not found')
    forbidden = sorted(set(changes) - allowed)
    if forbidden:
        raise PermissionDenied(f"Not allowed to edit: {', '.join(forbidden)}")
    changed = [f for f, v in changes.items() if getattr(referral, f) != v]
    if not changed:
        return referral
    for field in changed:
        setattr(referral, field, changes[field])
    referral.record_action('updated', f"{', '.join(changed)} edited by {user.display_name}")
    fields = [*changed, 'updated_at', 'action_history']
    if _is_staff(user):
        referral.recruiter = user
        fields.append('recruiter')
    referral.save(update_fields=fields)
    return referral

