"""
FastAPI dependencies for the session store.

The store is built once and placed on ``app.state.session_store``; request
handlers receive it (or a named session) through dependency injection.
"""

from typing import Callable

from fastapi import Depends, HTTPException, Request

from dynamostore.core.sessions import Session
from dynamostore.core.store import DynamoStore


def get_session_store(request: Request) -> DynamoStore:
    """Return the store attached to the running application"""
    store = getattr(request.app.state, "session_store", None)
    if store is None:
        raise HTTPException(status_code=503, detail="Session store is not configured")
    return store


def session_dependency(name: str) -> Callable[..., Session]:
    """
    Build a dependency that yields the session registered under ``name``.

    Example:
        @app.get("/me")
        def me(session: Session = Depends(session_dependency("session"))):
            return session.values
    """

    def _get_session(request: Request, store: DynamoStore = Depends(get_session_store)) -> Session:
        return store.get(request, name)

    return _get_session
