"""Per-request values shared with log records and the audit trail."""

from contextvars import ContextVar

from starlette.requests import Request

request_id_var: ContextVar[str | None] = ContextVar("request_id", default=None)


def set_request_id(request_id: str | None) -> None:
    request_id_var.set(request_id)


def get_request_id() -> str | None:
    return request_id_var.get()


def clear_request_id() -> None:
    request_id_var.set(None)


def client_ip(request: Request) -> str:
    """First hop of X-Forwarded-For (Cloud Run sits behind a proxy), else the peer address."""
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    return request.client.host if request.client else "unknown"
