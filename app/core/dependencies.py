from fastapi import Request

from app.collectors.registry import ProviderRegistry
from app.db.recorder import RunRecorder


def get_registry(request: Request) -> ProviderRegistry:
    """Provider registry built in the application lifespan."""
    return request.app.state.registry


def get_recorder(request: Request) -> RunRecorder:
    """Run recorder selected in the application lifespan."""
    return request.app.state.recorder
