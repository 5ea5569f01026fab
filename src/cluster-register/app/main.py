"""Cluster Register FastAPI Application.

The Cluster Register controller keeps Argo CD in sync with Cluster API:
- Registers a cluster secret in Argo CD for every workload cluster
- Adds clusters to the Generator's AppProject destinations
- Removes cluster secrets when clusters are deleted
- Re-runs every minute to converge from missed notifications
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI

from shared.config import ClusterRegisterSettings, get_register_settings
from shared.observability import get_logger, setup_logging

from .api import generators, health
from .clients.kube import KubeClient, load_kube_config
from .services import (
    CredentialResolver,
    GeneratorController,
    MembershipService,
    ProjectBindingService,
    Reconciler,
)

settings = get_register_settings()
setup_logging(
    service_name=settings.app_name,
    log_level=settings.log_level,
    log_format=settings.log_format,
)
logger = get_logger(__name__)


def build_controller(kube: KubeClient, settings: ClusterRegisterSettings) -> GeneratorController:
    """Wire the reconciliation services from settings."""
    reconciler = Reconciler(
        kube,
        resolver=CredentialResolver(kube),
        membership=MembershipService(kube, argocd_namespace=settings.argocd_namespace),
        binding=ProjectBindingService(
            kube,
            argocd_namespace=settings.argocd_namespace,
            allow_duplicates=settings.project_allow_duplicate_destinations,
        ),
        requeue_after=settings.requeue_after_seconds,
        isolate_failures=settings.reconcile_isolate_failures,
    )
    return GeneratorController(
        kube,
        reconciler,
        resync_interval=settings.generator_resync_seconds,
        retry_base=settings.retry_base_seconds,
        retry_max=settings.retry_max_seconds,
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Handles startup and shutdown of:
    - Kubernetes client configuration
    - Background controller task
    """
    logger.info("Starting Cluster Register service", version=settings.app_version)

    load_kube_config(settings.kube_in_cluster)
    kube = KubeClient()
    controller = build_controller(kube, settings)
    app.state.settings = settings
    app.state.kube = kube
    app.state.controller = controller

    controller_task = None
    if settings.controller_enabled:
        controller_task = asyncio.create_task(controller.run())
    app.state.controller_task = controller_task

    logger.info(
        "Cluster Register service started successfully",
        argocd_namespace=settings.argocd_namespace,
        controller_enabled=settings.controller_enabled,
    )

    yield

    # Shutdown
    logger.info("Shutting down Cluster Register service")
    if controller_task is not None:
        controller.stop()
        controller_task.cancel()
        try:
            await controller_task
        except asyncio.CancelledError:
            pass
    logger.info("Cluster Register service shutdown complete")


app = FastAPI(
    title="Cluster Register Service",
    description="Registers Cluster API clusters with Argo CD",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    debug=settings.debug,
    lifespan=lifespan,
)

# Include routers
app.include_router(generators.router, prefix="/api/v1", tags=["Generators"])
app.include_router(health.router, tags=["Health"])


@app.get("/")
async def root():
    """Root endpoint with service info."""
    return {
        "service": "cluster-register",
        "version": settings.app_version,
        "docs": "/docs",
    }


def run() -> None:
    """Console entry point."""
    import uvicorn

    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)
