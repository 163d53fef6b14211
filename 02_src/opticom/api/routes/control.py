"""Control API routes."""

from typing import Any

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from ...app import Application
from ..errors import http_error


class StatusResponse(BaseModel):
    """Response model for status."""

    status: str


class SchedulerResponse(BaseModel):
    """Response model for scheduler state."""

    running: bool
    sweeping: bool
    tracked_conversations: int


class SandboxResponse(BaseModel):
    """Response model for sandbox seeding."""

    status: str
    agents: list[str]
    conversations: list[str]


def create_control_router(app: Application, sandbox: Any = None) -> APIRouter:
    """Create control router. ``sandbox`` seeds demo data when configured."""
    router = APIRouter(prefix="/api/control", tags=["control"])

    def scheduler_state() -> dict:
        scheduler = app.scheduler
        return {
            "running": scheduler.is_running,
            "sweeping": scheduler.is_sweeping,
            "tracked_conversations": len(scheduler.last_advance),
        }

    @router.post("/reset", response_model=StatusResponse)
    async def reset_system() -> dict:
        """Delete all agents, conversations and messages."""
        try:
            await app.reset()
            return {"status": "ok"}
        except Exception as e:
            raise http_error(e) from e

    @router.get("/scheduler", response_model=SchedulerResponse)
    async def get_scheduler() -> dict:
        try:
            return scheduler_state()
        except Exception as e:
            raise http_error(e) from e

    @router.post("/scheduler/start", response_model=SchedulerResponse)
    async def start_scheduler() -> dict:
        """Start the background sweep."""
        try:
            app.scheduler.start()
            return scheduler_state()
        except Exception as e:
            raise http_error(e) from e

    @router.post("/scheduler/stop", response_model=SchedulerResponse)
    async def stop_scheduler() -> dict:
        """Stop the background sweep."""
        try:
            await app.scheduler.stop()
            return scheduler_state()
        except Exception as e:
            raise http_error(e) from e

    @router.post("/sandbox", response_model=SandboxResponse)
    async def seed_sandbox() -> dict:
        """Seed demo agents and conversations."""
        try:
            if sandbox is None:
                raise HTTPException(status_code=404, detail="Sandbox not configured")
            return await sandbox.seed()
        except Exception as e:
            raise http_error(e) from e

    return router
