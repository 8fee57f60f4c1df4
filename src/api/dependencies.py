"""FastAPI dependency injection providers."""

from typing import Annotated

from fastapi import Depends, Request

from api.auth import get_caller_identity
from engine import DispatchEngine


def get_engine(request: Request) -> DispatchEngine:
    """Retrieve DispatchEngine from app state."""
    engine: DispatchEngine = request.app.state.engine
    return engine


EngineDep = Annotated[DispatchEngine, Depends(get_engine)]
CallerDep = Annotated[str, Depends(get_caller_identity)]
