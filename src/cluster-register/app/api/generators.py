"""Generator reconcile status and manual trigger endpoints."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Request, status

from shared.models import GeneratorStatus, PassResult
from shared.observability import get_logger

from ..errors import NotFoundError, ReconcileError, RegisterError

logger = get_logger(__name__)

router = APIRouter()


@router.get(
    "/generators",
    response_model=list[GeneratorStatus],
    summary="List tracked generators",
    description="Scheduling state and last pass result of every tracked Generator.",
)
async def list_generators(request: Request):
    return request.app.state.controller.status()


@router.post(
    "/generators/{namespace}/{name}/reconcile",
    response_model=PassResult,
    summary="Run a reconcile pass now",
    description="Run one reconcile pass for a Generator outside its schedule.",
)
async def reconcile_generator(request: Request, namespace: str, name: str):
    """Run a reconcile pass and return its result.

    Waits for a pass already in flight for the same Generator.
    """
    controller = request.app.state.controller
    logger.info("Manual reconcile requested", generator=f"{namespace}/{name}")
    try:
        return await controller.trigger(namespace, name)
    except NotFoundError as e:
        if e.kind != "Generator":
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY,
                detail={"error": "RECONCILE_FAILED", "message": str(e)},
            )
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"error": "GENERATOR_NOT_FOUND", "message": str(e)},
        )
    except ReconcileError as e:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail={
                "error": "RECONCILE_FAILED",
                "message": str(e),
                "clusters": {key: str(err) for key, err in e.errors.items()},
            },
        )
    except RegisterError as e:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail={"error": "RECONCILE_FAILED", "message": str(e)},
        )
