from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from .observability import REQUEST_ID_HEADER, correlation_context


def _client_ip(request: Request) -> str | None:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip() or None
    return request.client.host if request.client else None


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Attach ip, user agent and a correlation id to each request; echo the id back."""

    async def dispatch(self, request: Request, call_next):
        request.state.ip = _client_ip(request)
        request.state.user_agent = request.headers.get("user-agent")
        with correlation_context(request.headers.get(REQUEST_ID_HEADER)) as correlation_id:
            request.state.request_id = correlation_id
            response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = correlation_id
        return response
