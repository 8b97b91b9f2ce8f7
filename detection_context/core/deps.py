"""
Dependency Injection

FastAPI dependencies for routes and the widget WebSocket.
"""

from typing import Annotated

from fastapi import Depends
from starlette.requests import HTTPConnection

from detection_context.infra.falcon import FalconClient, FalconCollection
from detection_context.services.context_store import Collection, ContextStore
from detection_context.services.workflow_client import WorkflowClient


def get_falcon(conn: HTTPConnection) -> FalconClient:
    """Falcon client created in the application lifespan"""
    return conn.app.state.falcon


FalconDep = Annotated[FalconClient, Depends(get_falcon)]


def get_collection(falcon: FalconDep) -> Collection:
    return FalconCollection(falcon)


def get_context_store(collection: Annotated[Collection, Depends(get_collection)]) -> ContextStore:
    return ContextStore(collection)


def get_workflow_client(falcon: FalconDep) -> WorkflowClient:
    return WorkflowClient(falcon)


# Type aliases for common dependencies
ContextStoreDep = Annotated[ContextStore, Depends(get_context_store)]
WorkflowDep = Annotated[WorkflowClient, Depends(get_workflow_client)]
