import logging
from typing import Any, Dict, Optional

from fastapi import Depends, FastAPI, HTTPException, Request, Response
from pydantic import BaseModel

from dynamostore.core.config import Settings, settings as default_settings
from dynamostore.core.exceptions import CookieEncodeError, SessionDeleteError, SessionSaveError
from dynamostore.core.logging_config import get_correlation_id, init_application_logging, set_correlation_id
from dynamostore.core.sessions import Session
from dynamostore.core.store import DynamoStore
from dynamostore.web.dependencies import get_session_store, session_dependency

logger = logging.getLogger("dynamostore.main")

CORRELATION_HEADER = "X-Request-ID"


class SessionView(BaseModel):
    """Response model describing the caller's session."""

    is_new: bool
    values: Dict[str, Any]
    max_age: int


def _view(session: Session) -> SessionView:
    return SessionView(is_new=session.is_new, values=session.values, max_age=session.options.max_age)


def create_app(store: Optional[DynamoStore] = None, settings: Optional[Settings] = None) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        store: Pre-built store; built from settings when omitted
        settings: Application settings; defaults to the environment

    Returns:
        Configured FastAPI app holding one shared store
    """
    settings = settings or default_settings

    if store is None:
        init_application_logging(settings)
        store = DynamoStore.from_settings(settings)

    app = FastAPI(
        title="dynamostore",
        description="Server-side sessions persisted in DynamoDB",
        version="1.0.0",
    )
    app.state.session_store = store

    current_session = session_dependency(settings.cookie_name)

    @app.middleware("http")
    async def correlation_id_middleware(request: Request, call_next):
        set_correlation_id(request.headers.get(CORRELATION_HEADER))
        correlation_id = get_correlation_id()
        try:
            response = await call_next(request)
        finally:
            set_correlation_id(None)
        response.headers[CORRELATION_HEADER] = correlation_id
        return response

    @app.get("/session", response_model=SessionView)
    def read_session(session: Session = Depends(current_session)):
        """Return the current session without saving it"""
        return _view(session)

    @app.put("/session/values", response_model=SessionView)
    def update_session(
        values: Dict[str, Any],
        request: Request,
        response: Response,
        session: Session = Depends(current_session),
    ):
        """Merge ``values`` into the session and save it"""
        session.values.update(values)
        try:
            session.save(request, response)
        except (SessionSaveError, CookieEncodeError) as e:
            logger.error(f"Failed to save session: {e}")
            raise HTTPException(status_code=500, detail="Failed to save session")
        return _view(session)

    @app.delete("/session", response_model=SessionView)
    def delete_session(
        request: Request,
        response: Response,
        session: Session = Depends(current_session),
    ):
        """Delete the session record and clear the cookie"""
        session.options.max_age = -1
        try:
            session.save(request, response)
        except SessionDeleteError as e:
            logger.error(f"Failed to delete session: {e}")
            raise HTTPException(status_code=500, detail="Failed to delete session")
        session.values = {}
        return _view(session)

    @app.get("/health")
    def health(store: DynamoStore = Depends(get_session_store)):
        return {"status": "healthy", "table": store.table}

    return app
