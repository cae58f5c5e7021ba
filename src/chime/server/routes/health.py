"""Health check routes."""

from typing import Any

from fastapi import APIRouter, Request

router = APIRouter()


@router.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint.

    Returns:
        Health status.
    """
    return {"status": "healthy"}


@router.get("/ready")
async def readiness_check(request: Request) -> dict[str, Any]:
    """Readiness check: timers armed and transport attached."""
    server = request.app.state.server
    registry = server.registry
    hub = server.hub
    ready = registry.running and hub.attached
    return {
        "status": "ready" if ready else "starting",
        "running": registry.running,
        "timers": {
            name: next_fire.isoformat() if next_fire else None
            for name, next_fire in registry.next_fire_times().items()
        },
        "connections": len(hub),
    }
