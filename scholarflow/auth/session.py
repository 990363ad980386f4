from __future__ import annotations

from dataclasses import dataclass

from starlette.requests import Request


SESSION_USER_ID_KEY = "auth_user_id"
SESSION_USER_ORCID_KEY = "auth_user_orcid_id"
SESSION_OAUTH_STATE_KEY = "orcid_oauth_state"


@dataclass(frozen=True)
class SessionUser:
    id: int
    orcid_id: str


def get_session_user(request: Request) -> SessionUser | None:
    user_id = request.session.get(SESSION_USER_ID_KEY)
    orcid_id = request.session.get(SESSION_USER_ORCID_KEY)
    if user_id is None or orcid_id is None:
        return None
    try:
        parsed_user_id = int(user_id)
    except (TypeError, ValueError):
        return None
    if not isinstance(orcid_id, str):
        return None
    return SessionUser(id=parsed_user_id, orcid_id=orcid_id)


def set_session_user(request: Request, *, user_id: int, orcid_id: str) -> None:
    request.session[SESSION_USER_ID_KEY] = int(user_id)
    request.session[SESSION_USER_ORCID_KEY] = orcid_id


def clear_session_user(request: Request) -> None:
    request.session.pop(SESSION_USER_ID_KEY, None)
    request.session.pop(SESSION_USER_ORCID_KEY, None)


def store_oauth_state(request: Request, state: str) -> None:
    request.session[SESSION_OAUTH_STATE_KEY] = state


def pop_oauth_state(request: Request) -> str | None:
    value = request.session.pop(SESSION_OAUTH_STATE_KEY, None)
    return value if isinstance(value, str) else None
