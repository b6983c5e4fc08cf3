"""
Referral submission and detail endpoints.

Clinicians list and submit their own referrals; recruiters and leadership
may open any referral.  A clinician asking for someone else's referral
gets a 404 so that ids of other people's candidates are not revealed.
"""
from __future__ import annotations

import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from referrals.permissions import PIPELINE_ROLES, has_role
from referrals.serializers.referral import ReferralCreateSerializer, ReferralUpdateSerializer
from referrals.services import referrals as svc

logger = logging.getLogger(__name__)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def referrals_list(request):
    if request.method == 'GET':
        return Response({'ok': True, 'data': svc.list_own(request.user)})
    s = ReferralCreateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    referral = svc.create_referral(request.user, s.validated_data)
    logger.info('referral submitted', extra={'context': {'referralId': referral.id, 'userId': request.user.pk}})
    return Response({'ok': True, 'data': svc.format_referral(referral)}, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PATCH'])
@permission_classes([IsAuthenticated])
def referral_detail(request, pk: int):
    user = request.user
    referral = svc.get_for_user(user, pk)
    staff = has_role(user, *PIPELINE_ROLES)
    if request.method == 'PATCH':
        s = ReferralUpdateSerializer(data=request.data, partial=True)
        s.is_valid(raise_exception=True)
        referral = svc.update_referral(user, referral, dict(s.validated_data))
    return Response({'ok': True, 'data': svc.format_referral(referral, for_staff=staff)})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def candidate_profile(request, pk: int):
    """Full candidate view used by the profile page, including the action history."""
    user = request.user
    referral = svc.get_for_user(user, pk)
    return Response({'ok': True, 'data': svc.format_referral(referral, for_staff=has_role(user, *PIPELINE_ROLES))})
