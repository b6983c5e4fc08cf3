from django.conf import settings
from rest_framework.throttling import SimpleRateThrottle


class RequestMonitorThrottle(SimpleRateThrottle):
    """Per-caller request quota over a sliding window.

    Authenticated callers are keyed by user id, anonymous ones by client
    address.  The hit history lives in the default cache (Redis when
    ``REDIS_URL`` is set), so every worker shares one quota and idle keys
    expire with the window.  Set ``cache`` or ``timer`` on a subclass to
    use another store or clock.
    """
    scope = 'request_monitor'

    def get_rate(self):
        return f'{settings.RATE_LIMIT_MAX_REQUESTS}/{settings.RATE_LIMIT_WINDOW_SECONDS}'

    def parse_rate(self, rate):
        # "<requests>/<seconds>" rather than DRF's named periods
        if rate is None:
            return None, None
        num, seconds = rate.split('/')
        return int(num), int(seconds)

    def get_cache_key(self, request, view):
        user = getattr(request, 'user', None)
        if user and user.is_authenticated:
            ident = f'user:{user.pk}'
        else:
            ident = f'ip:{self.get_ident(request)}'
        return self.cache_format % {'scope': self.scope, 'ident': ident}

