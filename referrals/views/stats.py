from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from referrals.permissions import IsPipelineStaff
from referrals.services import stats


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def referrals_stats(request):
    """Status counts of the caller's own referrals for the selected window."""
    params = request.query_params
    window = stats.resolve_window(params.get('range'), params.get('fromDate'), params.get('toDate'))
    return Response({
        'ok': True,
        'timeframe': window.as_dict(),
        'statistics': stats.referral_stats(request.user, window),
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsPipelineStaff])
def team_kpis(request):
    """Team-wide KPIs (cached, invalidated on every stage change)."""
    return Response({'ok': True, **stats.cached_kpis()})


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsPipelineStaff])
def referral_inflow(request):
    params = request.query_params
    return Response({'ok': True, **stats.inflow(params.get('timeframe'), params.get('role'))})
