"""Referral tracking application.

This package contains models, serializers, services and views
implementing the API contract expected by the clinician, recruiter and
leadership dashboards.
"""
