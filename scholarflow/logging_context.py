from __future__ import annotations

from contextvars import ContextVar

_request_id_ctx: ContextVar[str | None] = ContextVar("request_id", default=None)
_session_user_id_ctx: ContextVar[int | None] = ContextVar("session_user_id", default=None)


def get_request_id() -> str | None:
    return _request_id_ctx.get()


def set_request_id(value: str | None) -> None:
    _request_id_ctx.set(value)


def get_session_user_id() -> int | None:
    return _session_user_id_ctx.get()


def set_session_user_id(value: int | None) -> None:
    # Only visible to log records emitted from the task that resolved the user.
    _session_user_id_ctx.set(value)
