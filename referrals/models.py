"""
Database models for the referral hub backend.

These models capture the core concepts of the system: users with a
clinician/recruiter/leadership role, the candidate referrals that move
through the hiring pipeline, the rewards paid out for successful
referrals, the alerts shown to clinicians and the achievements they
unlock.  Field names follow the columns the front-end expects so that
the transformation to JSON responses stays simple.
"""
from __future__ import annotations

from django.contrib.auth.models import AbstractUser
from django.db import models
from django.utils import timezone


class User(AbstractUser):
    """Custom user model with a role.

    Roles mirror the front-end dashboards: 'clinician', 'recruiter' and
    'leadership'.  The role is chosen at registration and is not
    editable through the API afterwards.
    """
    ROLE_CLINICIAN = 'clinician'
    ROLE_RECRUITER = 'recruiter'
    ROLE_LEADERSHIP = 'leadership'
    ROLE_CHOICES = [
        (ROLE_CLINICIAN, 'Clinician'),
        (ROLE_RECRUITER, 'Recruiter'),
        (ROLE_LEADERSHIP, 'Leadership'),
    ]
    role = models.CharField(max_length=16, choices=ROLE_CHOICES, default=ROLE_CLINICIAN, db_index=True)
    name = models.CharField(max_length=255, blank=True)
    email = models.EmailField(unique=True)

    def __str__(self) -> str:
        return f"{self.username} ({self.role})"

    @property
    def display_name(self) -> str:
        return self.name or self.get_full_name() or self.username


class Referral(models.Model):
    """A candidate submitted by a clinician.

    ``status`` is the pipeline stage.  ``action_history`` is an
    append-only list of ``{action, notes, timestamp}`` entries; use
    :meth:`record_action` rather than editing it in place.
    """
    STATUS_PENDING = 'pending'
    STATUS_CONTACTED = 'contacted'
    STATUS_INTERVIEWING = 'interviewing'
    STATUS_HIRED = 'hired'
    STATUS_REJECTED = 'rejected'
    STATUS_CHOICES = [
        (STATUS_PENDING, 'Pending'),
        (STATUS_CONTACTED, 'Contacted'),
        (STATUS_INTERVIEWING, 'Interviewing'),
        (STATUS_HIRED, 'Hired'),
        (STATUS_REJECTED, 'Rejected'),
    ]

    referrer = models.ForeignKey(User, on_delete=models.PROTECT, related_name='referrals')
    # staff member who last moved or edited the referral
    recruiter = models.ForeignKey(
        User, null=True, blank=True, on_delete=models.SET_NULL, related_name='handled_referrals'
    )
    candidate_name = models.CharField(max_length=100)
    candidate_email = models.EmailField(max_length=255)
    candidate_phone = models.CharField(max_length=32, blank=True, null=True)
    position = models.CharField(max_length=100)
    department = models.CharField(max_length=50, blank=True, null=True)
    experience = models.TextField(blank=True, null=True)
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_PENDING)
    notes = models.TextField(blank=True, null=True)
    recruiter_notes = models.TextField(blank=True, null=True)
    next_steps = models.TextField(blank=True, null=True)
    resume_url = models.URLField(max_length=512, blank=True, null=True)
    skill_tags = models.JSONField(default=list, blank=True)
    social_links = models.JSONField(default=dict, blank=True)
    source = models.CharField(max_length=100, blank=True, null=True)
    action_history = models.JSONField(default=list, blank=True)
    created_at = models.DateTimeField(default=timezone.now, editable=False)
    updated_at = models.DateTimeField(default=timezone.now)

    class Meta:
        indexes = [
            models.Index(fields=['status'], name='referral_status_idx'),
            models.Index(fields=['referrer'], name='referral_referrer_idx'),
            models.Index(fields=['created_at'], name='referral_created_at_idx'),
            models.Index(fields=['candidate_email'], name='referral_email_idx'),
        ]

    def __str__(self) -> str:
        return f"{self.candidate_name} ({self.status})"

    def record_action(self, action: str, notes: str | None = None, *, at=None) -> dict:
        """Append an entry to the action history and refresh ``updated_at``.

        The caller is responsible for saving the instance.
        """
        at = at or timezone.now()
        entry = {'action': action, 'timestamp': at.isoformat()}
        if notes:
            entry['notes'] = notes
        self.action_history = [*(self.action_history or []), entry]
        self.updated_at = at
        return entry


class Reward(models.Model):
    """Bonus owed to a clinician for a referral that converted."""
    STATUS_PENDING = 'pending'
    STATUS_PAID = 'paid'
    STATUS_CHOICES = [
        (STATUS_PENDING, 'Pending'),
        (STATUS_PAID, 'Paid'),
    ]
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='rewards')
    referral = models.ForeignKey(Referral, on_delete=models.CASCADE, related_name='rewards')
    amount = models.PositiveIntegerField()
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default=STATUS_PENDING, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self) -> str:
        return f"Reward ${self.amount} for {self.referral_id} ({self.status})"


class Alert(models.Model):
    """A notification shown in a user's feed."""
    TYPE_NEW_REFERRAL = 'new_referral'
    TYPE_PIPELINE_UPDATE = 'pipeline_update'
    TYPE_SYSTEM = 'system_notification'
    TYPE_CHOICES = [
        (TYPE_NEW_REFERRAL, 'New referral'),
        (TYPE_PIPELINE_UPDATE, 'Pipeline update'),
        (TYPE_SYSTEM, 'System notification'),
    ]
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='alerts')
    type = models.CharField(max_length=32, choices=TYPE_CHOICES)
    message = models.TextField()
    read = models.BooleanField(default=False)
    related_referral = models.ForeignKey(
        Referral, null=True, blank=True, on_delete=models.SET_NULL, related_name='alerts'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    read_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        indexes = [
            models.Index(fields=['user', 'created_at'], name='alert_user_created_idx'),
        ]

    def __str__(self) -> str:
        return f"{self.type} -> {self.user_id}"


class Achievement(models.Model):
    """A milestone clinicians unlock by reaching ``required_score``.

    How the score is measured depends on ``type``; see
    :mod:`referrals.services.achievements`.
    """
    TYPE_REFERRAL_STREAK = 'referral_streak'
    TYPE_MONTHLY_TARGET = 'monthly_target'
    TYPE_CAREER_MILESTONE = 'career_milestone'
    TYPE_QUALITY_RATING = 'quality_rating'
    TYPE_SPEED_HERO = 'speed_hero'
    TYPE_TEAM_PLAYER = 'team_player'
    TYPE_CHOICES = [
        (TYPE_REFERRAL_STREAK, 'Referral streak'),
        (TYPE_MONTHLY_TARGET, 'Monthly target'),
        (TYPE_CAREER_MILESTONE, 'Career milestone'),
        (TYPE_QUALITY_RATING, 'Quality rating'),
        (TYPE_SPEED_HERO, 'Speed hero'),
        (TYPE_TEAM_PLAYER, 'Team player'),
    ]
    TIER_CHOICES = [
        ('bronze', 'Bronze'),
        ('silver', 'Silver'),
        ('gold', 'Gold'),
        ('platinum', 'Platinum'),
        ('diamond', 'Diamond'),
    ]

    name = models.CharField(max_length=100)
    description = models.TextField()
    type = models.CharField(max_length=32, choices=TYPE_CHOICES)
    tier = models.CharField(max_length=16, choices=TIER_CHOICES)
    required_score = models.PositiveIntegerField()
    reward_amount = models.PositiveIntegerField(default=0)
    icon_url = models.URLField(max_length=512, blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=['type'], name='achievement_type_idx'),
            models.Index(fields=['tier'], name='achievement_tier_idx'),
        ]

    def __str__(self) -> str:
        return f"{self.name} ({self.tier})"


class UserAchievement(models.Model):
    """A user's current progress towards one achievement."""
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='achievements')
    achievement = models.ForeignKey(Achievement, on_delete=models.CASCADE, related_name='holders')
    progress = models.PositiveIntegerField(default=0)
    current_tier = models.CharField(max_length=16, choices=Achievement.TIER_CHOICES, default='bronze')
    is_completed = models.BooleanField(default=False)
    completed_at = models.DateTimeField(null=True, blank=True)
    last_updated = models.DateTimeField(auto_now=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=['user', 'achievement'], name='user_achievement_unique'),
        ]

    def __str__(self) -> str:
        return f"{self.user_id}:{self.achievement_id} {self.progress}"


class AchievementProgress(models.Model):
    """Snapshot written whenever a user's progress on an achievement changes."""
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='achievement_progress')
    achievement = models.ForeignKey(Achievement, on_delete=models.CASCADE, related_name='progress_log')
    progress_snapshot = models.JSONField()
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=['user', 'created_at'], name='achievement_progress_user_idx'),
        ]
