"""
Session objects, cookie options and the per-request session registry.
"""

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Any, Dict, Optional

from starlette.requests import Request
from starlette.responses import Response

if TYPE_CHECKING:
    from dynamostore.core.store import DynamoStore

logger = logging.getLogger(__name__)

REGISTRY_STATE_KEY = "dynamostore_sessions"

_EPOCH = datetime(1970, 1, 1, 0, 0, 1, tzinfo=timezone.utc)


@dataclass
class CookieOptions:
    """Cookie attributes for a session. ``max_age <= 0`` deletes on save."""

    path: str = "/"
    domain: Optional[str] = None
    max_age: int = 0
    secure: bool = False
    http_only: bool = True
    same_site: Optional[str] = "lax"

    def copy(self) -> "CookieOptions":
        return replace(self)


@dataclass
class Session:
    """
    In-memory state for one named session.

    ``id`` stays empty until the first save and is never reassigned after.
    """

    name: str
    store: "DynamoStore" = field(repr=False)
    options: CookieOptions = field(default_factory=CookieOptions)
    id: str = ""
    values: Dict[str, Any] = field(default_factory=dict)
    is_new: bool = True

    def save(self, request: Request, response: Response) -> None:
        """Persist the session through its store and set the cookie"""
        self.store.save(request, response, self)


def set_session_cookie(response: Response, name: str, value: str, options: CookieOptions) -> None:
    """
    Write a session cookie.

    A positive ``max_age`` sets both Max-Age and Expires. Otherwise the
    cookie is cleared: empty value, Max-Age=0 and Expires in the past.
    """
    if options.max_age > 0:
        max_age = options.max_age
        expires: datetime = datetime.now(timezone.utc) + timedelta(seconds=max_age)
    else:
        value = ""
        max_age = 0
        expires = _EPOCH

    response.set_cookie(
        key=name,
        value=value,
        max_age=max_age,
        expires=expires,
        path=options.path,
        domain=options.domain,
        secure=options.secure,
        httponly=options.http_only,
        samesite=options.same_site,
    )


class SessionRegistry:
    """Caches sessions by name for the lifetime of one request"""

    def __init__(self, request: Request):
        self.request = request
        self._sessions: Dict[str, Session] = {}

    @classmethod
    def for_request(cls, request: Request) -> "SessionRegistry":
        """Return the registry attached to ``request``, creating it if needed"""
        registry = getattr(request.state, REGISTRY_STATE_KEY, None)
        if registry is None:
            registry = cls(request)
            setattr(request.state, REGISTRY_STATE_KEY, registry)
        return registry

    def get(self, store: "DynamoStore", name: str) -> Session:
        session = self._sessions.get(name)
        if session is None:
            session = store.new(self.request, name)
            self._sessions[name] = session
        return session

    def save_all(self, response: Response) -> None:
        """Save every session registered for this request"""
        for name, session in self._sessions.items():
            logger.debug(f"Saving registered session {name}")
            session.save(self.request, response)

    def __contains__(self, name: str) -> bool:
        return name in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)
