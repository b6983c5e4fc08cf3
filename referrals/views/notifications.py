from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from referrals.services.notifications import format_alert, list_alerts, mark_read


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def notifications_list(request):
    unread_only = request.query_params.get('unread') in ('1', 'true', 'yes')
    alerts = list_alerts(request.user, unread_only=unread_only)
    return Response({'ok': True, 'data': alerts, 'unread': sum(1 for a in alerts if not a['read'])})


@api_view(['PATCH'])
@permission_classes([IsAuthenticated])
def notification_read(request, pk: int):
    alert = mark_read(request.user, pk)
    return Response({'ok': True, 'data': format_alert(alert)})
