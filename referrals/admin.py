"""
Django admin registrations for the referral models.

Superusers can inspect users, referrals, rewards, alerts and
achievements via the ``/admin/`` URL.  Referral status changes made
here bypass the pipeline service, so they do not append to the action
history.
"""

from django.contrib import admin

from .models import Achievement, AchievementProgress, Alert, Referral, Reward, User, UserAchievement


@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    list_display = ('username', 'name', 'email', 'role', 'is_staff', 'is_superuser')
    list_filter = ('role', 'is_staff')
    search_fields = ('username', 'name', 'email')
    readonly_fields = ('role', 'date_joined', 'last_login')


@admin.register(Referral)
class ReferralAdmin(admin.ModelAdmin):
    list_display = ('id', 'candidate_name', 'position', 'department', 'status', 'referrer', 'recruiter', 'updated_at')
    list_filter = ('status', 'department')
    search_fields = ('id', 'candidate_name', 'candidate_email', 'position', 'referrer__username')
    readonly_fields = ('referrer', 'created_at', 'action_history')


@admin.register(Reward)
class RewardAdmin(admin.ModelAdmin):
    list_display = ('id', 'user', 'referral', 'amount', 'status', 'created_at')
    list_filter = ('status',)
    search_fields = ('user__username', 'referral__candidate_name')


@admin.register(Alert)
class AlertAdmin(admin.ModelAdmin):
    list_display = ('id', 'user', 'type', 'read', 'created_at')
    list_filter = ('type', 'read')
    search_fields = ('user__username', 'message')


@admin.register(Achievement)
class AchievementAdmin(admin.ModelAdmin):
    list_display = ('id', 'name', 'type', 'tier', 'required_score', 'reward_amount')
    list_filter = ('type', 'tier')
    search_fields = ('name',)


@admin.register(UserAchievement)
class UserAchievementAdmin(admin.ModelAdmin):
    list_display = ('id', 'user', 'achievement', 'progress', 'is_completed', 'completed_at')
    list_filter = ('is_completed', 'current_tier')
    search_fields = ('user__username', 'achievement__name')


@admin.register(AchievementProgress)
class AchievementProgressAdmin(admin.ModelAdmin):
    list_display = ('id', 'user', 'achievement', 'created_at')
    readonly_fields = ('progress_snapshot',)
