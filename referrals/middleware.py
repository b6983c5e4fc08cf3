import uuid

from .log import request_id_var

REQUEST_ID_HEADER = 'X-Request-ID'


class RequestIdMiddleware:
    """Tag every request with a correlation id.

    The id comes from the ``X-Request-ID`` header when the client (or a
    proxy) supplies one, otherwise a new UUID4 is generated.  It is exposed
    as ``request.request_id``, made available to log records and echoed in
    the response header.
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        request_id = (request.headers.get(REQUEST_ID_HEADER) or '').strip()[:64] or str(uuid.uuid4())
        request.request_id = request_id
        token = request_id_var.set(request_id)
        try:
            response = self.get_response(request)
        finally:
            request_id_var.reset(token)
        response[REQUEST_ID_HEADER] = request_id
        return response
