from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from referrals.services.achievements import list_achievements
from referrals.services.rewards import list_rewards, rewards_snapshot


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def rewards_list(request):
    return Response({'ok': True, 'data': list_rewards(request.user)})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def rewards_summary(request):
    return Response({'ok': True, **rewards_snapshot(request.user)})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def achievements_list(request):
    return Response({'ok': True, 'data': list_achievements(request.user)})
