"""Health check endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Request

router = APIRouter()


@router.get(
    "/health",
    summary="Health check",
    description="Basic health check endpoint.",
)
async def health():
    """Basic health check."""
    return {"status": "healthy", "service": "cluster-register"}


@router.get(
    "/ready",
    summary="Readiness check",
    description="Check if the controller can reach the Kubernetes API.",
)
async def ready(request: Request):
    """Readiness check.

    Verifies the Kubernetes API is reachable and, when enabled, that the
    controller loop is running.
    """
    checks = {
        "kubernetes": await request.app.state.kube.ping(),
    }

    controller = request.app.state.controller
    if request.app.state.settings.controller_enabled:
        checks["controller"] = controller.running

    all_ready = all(checks.values())

    return {
        "status": "ready" if all_ready else "not_ready",
        "checks": checks,
    }
