"""
URL mappings for the referral hub API.

Trailing slashes are deliberately omitted; ``APPEND_SLASH`` is off so
``/api/referrals`` and ``/api/referrals/`` are not silently redirected.
"""
from django.urls import include, path

from .views import auth, health, notifications, pipeline, referrals, rewards, stats

urlpatterns = [
    path('', include('django_prometheus.urls')),  # /metrics
    path('healthz', health.healthz, name='healthz'),
    # Session
    path('api/register', auth.register_view, name='register'),
    path('api/login', auth.login_view, name='login'),
    path('api/logout', auth.logout_view, name='logout'),
    path('api/user', auth.current_user, name='current-user'),
    # Referrals
    path('api/referrals', referrals.referrals_list, name='referrals'),
    path('api/referrals/<int:pk>', referrals.referral_detail, name='referral-detail'),
    path('api/candidate/<int:pk>', referrals.candidate_profile, name='candidate-profile'),
    # Clinician dashboard
    path('api/rewards', rewards.rewards_list, name='rewards'),
    path('api/clinician/rewards-snapshot', rewards.rewards_summary, name='rewards-snapshot'),
    path('api/clinician/achievements', rewards.achievements_list, name='achievements'),
    path('api/clinician/referrals-stats', stats.referrals_stats, name='referrals-stats'),
    path('api/clinician/notifications', notifications.notifications_list, name='notifications'),
    path('api/clinician/notifications/<int:pk>/read', notifications.notification_read, name='notification-read'),
    # Recruiter / leadership
    path('api/recruiter/pipeline', pipeline.pipeline_board, name='pipeline'),
    path('api/recruiter/pipeline/update-stage', pipeline.pipeline_update_stage, name='pipeline-update-stage'),
    path('api/recruiter/referrals/pipeline', pipeline.pipeline_snapshot, name='pipeline-snapshot'),
    path('api/recruiter/referrals/inflow', stats.referral_inflow, name='referral-inflow'),
    path('api/recruiter/kpis', stats.team_kpis, name='kpis'),
]
