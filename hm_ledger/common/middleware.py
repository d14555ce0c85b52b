# hm_ledger/common/middleware.py
import structlog

from hm_ledger.common.api.exceptions import ensure_request_id


class RequestContextMiddleware:
    """
    Binds request_id, method and path into structlog's context so every log
    line written while serving the request carries them. The id is echoed
    back in the X-Request-Id response header and reused by the error envelope.
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        request_id = ensure_request_id(request)
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id, method=request.method, path=request.path)
        try:
            response = self.get_response(request)
        finally:
            structlog.contextvars.clear_contextvars()
        response["X-Request-Id"] = request_id
        return response
