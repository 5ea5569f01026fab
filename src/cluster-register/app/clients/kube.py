"""Kubernetes API client for the register controller.

Wraps the blocking ``kubernetes`` client. Every call runs in a worker
thread and API failures are translated into the controller's error types.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable
from typing import Any, TypeVar

import urllib3
from kubernetes import client, config
from kubernetes.client.rest import ApiException

from shared.observability import get_logger, log_external_call_end, log_external_call_start

from ..errors import AlreadyExistsError, NotFoundError, TransientError

logger = get_logger(__name__)

T = TypeVar("T")

# Cluster API
CAPI_GROUP = "cluster.x-k8s.io"
CAPI_VERSION = "v1beta1"
CAPI_CLUSTERS = "clusters"

# Generator request objects
GENERATOR_GROUP = "cluster.argoproj.io"
GENERATOR_VERSION = "v1alpha1"
GENERATOR_PLURAL = "generators"

# Argo CD
ARGOCD_GROUP = "argoproj.io"
ARGOCD_VERSION = "v1alpha1"
APPPROJECT_PLURAL = "appprojects"


def load_kube_config(in_cluster: bool | None = None) -> None:
    """Load Kubernetes client configuration.

    Args:
        in_cluster: True forces in-cluster config, False forces kubeconfig,
            None tries in-cluster first and falls back to kubeconfig.
    """
    if in_cluster is True:
        config.load_incluster_config()
        return
    if in_cluster is False:
        config.load_kube_config()
        return
    try:
        # Try in-cluster config first
        config.load_incluster_config()
    except config.ConfigException:
        # Fall back to kubeconfig
        config.load_kube_config()


class KubeClient:
    """Thin async facade over CoreV1Api and CustomObjectsApi."""

    def __init__(
        self,
        core: client.CoreV1Api | None = None,
        custom: client.CustomObjectsApi | None = None,
        version: client.VersionApi | None = None,
    ):
        self._core = core
        self._custom = custom
        self._version = version

    @property
    def core(self) -> client.CoreV1Api:
        if self._core is None:
            self._core = client.CoreV1Api()
        return self._core

    @property
    def custom(self) -> client.CustomObjectsApi:
        if self._custom is None:
            self._custom = client.CustomObjectsApi()
        return self._custom

    @property
    def version(self) -> client.VersionApi:
        if self._version is None:
            self._version = client.VersionApi()
        return self._version

    async def _call(
        self,
        operation: str,
        kind: str,
        name: str | None,
        namespace: str | None,
        fn: Callable[..., T],
        /,
        **kwargs: Any,
    ) -> T:
        log_external_call_start(logger, "kubernetes", operation)
        start = time.monotonic()
        try:
            result = await asyncio.to_thread(fn, **kwargs)
        except ApiException as e:
            log_external_call_end(
                logger,
                "kubernetes",
                operation,
                success=False,
                duration_ms=(time.monotonic() - start) * 1000,
                error=f"{e.status} {e.reason}",
            )
            if e.status == 404:
                raise NotFoundError(kind, name or "", namespace) from e
            if e.status == 409 and operation.startswith("create_"):
                raise AlreadyExistsError(kind, name or "", namespace) from e
            if e.status == 409:
                # Update raced another writer; the next pass re-reads the object
                raise TransientError(
                    f"{operation} {kind} conflict: {e.reason}", status=e.status
                ) from e
            raise TransientError(
                f"{operation} {kind} failed: {e.status} {e.reason}", status=e.status
            ) from e
        except (urllib3.exceptions.HTTPError, OSError) as e:
            log_external_call_end(
                logger,
                "kubernetes",
                operation,
                success=False,
                duration_ms=(time.monotonic() - start) * 1000,
                error=str(e),
            )
            raise TransientError(f"{operation} {kind} failed: {e}") from e

        log_external_call_end(
            logger,
            "kubernetes",
            operation,
            success=True,
            duration_ms=(time.monotonic() - start) * 1000,
        )
        return result

    # Secrets

    async def get_secret(self, name: str, namespace: str) -> client.V1Secret:
        return await self._call(
            "read_secret",
            "Secret",
            name,
            namespace,
            self.core.read_namespaced_secret,
            name=name,
            namespace=namespace,
        )

    async def create_secret(self, body: client.V1Secret) -> client.V1Secret:
        meta = body.metadata
        return await self._call(
            "create_secret",
            "Secret",
            meta.name,
            meta.namespace,
            self.core.create_namespaced_secret,
            namespace=meta.namespace,
            body=body,
        )

    async def replace_secret(self, body: client.V1Secret) -> client.V1Secret:
        meta = body.metadata
        return await self._call(
            "replace_secret",
            "Secret",
            meta.name,
            meta.namespace,
            self.core.replace_namespaced_secret,
            name=meta.name,
            namespace=meta.namespace,
            body=body,
        )

    async def delete_secret(self, name: str, namespace: str) -> None:
        await self._call(
            "delete_secret",
            "Secret",
            name,
            namespace,
            self.core.delete_namespaced_secret,
            name=name,
            namespace=namespace,
        )

    # Cluster API

    async def list_clusters(self) -> list[dict[str, Any]]:
        """List Cluster objects across all namespaces, without a label filter."""
        result = await self._call(
            "list_clusters",
            "Cluster",
            None,
            None,
            self.custom.list_cluster_custom_object,
            group=CAPI_GROUP,
            version=CAPI_VERSION,
            plural=CAPI_CLUSTERS,
        )
        return list(result.get("items") or [])

    # Generators

    async def get_generator(self, name: str, namespace: str) -> dict[str, Any]:
        return await self._call(
            "read_generator",
            "Generator",
            name,
            namespace,
            self.custom.get_namespaced_custom_object,
            group=GENERATOR_GROUP,
            version=GENERATOR_VERSION,
            namespace=namespace,
            plural=GENERATOR_PLURAL,
            name=name,
        )

    async def list_generators(self) -> list[dict[str, Any]]:
        result = await self._call(
            "list_generators",
            "Generator",
            None,
            None,
            self.custom.list_cluster_custom_object,
            group=GENERATOR_GROUP,
            version=GENERATOR_VERSION,
            plural=GENERATOR_PLURAL,
        )
        return list(result.get("items") or [])

    # Argo CD AppProjects

    async def get_app_project(self, name: str, namespace: str) -> dict[str, Any]:
        return await self._call(
            "read_appproject",
            "AppProject",
            name,
            namespace,
            self.custom.get_namespaced_custom_object,
            group=ARGOCD_GROUP,
            version=ARGOCD_VERSION,
            namespace=namespace,
            plural=APPPROJECT_PLURAL,
            name=name,
        )

    async def replace_app_project(self, project: dict[str, Any]) -> dict[str, Any]:
        meta = project.get("metadata") or {}
        return await self._call(
            "replace_appproject",
            "AppProject",
            meta.get("name"),
            meta.get("namespace"),
            self.custom.replace_namespaced_custom_object,
            group=ARGOCD_GROUP,
            version=ARGOCD_VERSION,
            namespace=meta.get("namespace"),
            plural=APPPROJECT_PLURAL,
            name=meta.get("name"),
            body=project,
        )

    async def ping(self) -> bool:
        """Check the API server is reachable."""
        try:
            await self._call("get_version", "Version", None, None, self.version.get_code)
        except TransientError:
            return False
        return True
