"""FastAPI dependency injection: app.state holds singletons; Depends() resolves them.

No external DI container. Lifespan (main.py) creates the store, gateway,
jobs and scheduler once and attaches them to app.state; these getters are
used by Depends().
"""
from typing import Annotated

from fastapi import Depends, Request

from market_pulse.db import Store
from market_pulse.jobs import PipelineScheduler


def get_store(request: Request) -> Store:
    """Resolve the persistence store from app.state (created at startup)."""
    return request.app.state.store


def get_scheduler(request: Request) -> PipelineScheduler:
    """Resolve the pipeline scheduler from app.state."""
    return request.app.state.scheduler


# Type aliases for route injection
StoreDep = Annotated[Store, Depends(get_store)]
SchedulerDep = Annotated[PipelineScheduler, Depends(get_scheduler)]
