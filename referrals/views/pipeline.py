"""
Recruiter pipeline board endpoints.

Reading the board is lenient: bad filter values are dropped.  Moving a
candidate is strict: the target stage must be one of the five stages.
"""
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from referrals.permissions import IsPipelineStaff
from referrals.serializers.pipeline import UpdateStageSerializer
from referrals.services.pipeline import build_pipeline, filters_from_params, status_breakdown
from referrals.services.referrals import format_referral
from referrals.services.transitions import update_stage


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsPipelineStaff])
def pipeline_board(request):
    filters = filters_from_params(request.query_params)
    return Response({'ok': True, **build_pipeline(filters)})


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsPipelineStaff])
def pipeline_update_stage(request):
    s = UpdateStageSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    referral = update_stage(request.user, s.validated_data['candidateId'], s.validated_data['newStage'])
    return Response({'ok': True, 'data': format_referral(referral, for_staff=True)})


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsPipelineStaff])
def pipeline_snapshot(request):
    filters = filters_from_params(request.query_params)
    return Response({'ok': True, **status_breakdown(filters)})
