"""Test fixtures for Cluster Register."""

import base64
import copy
import os
from collections.abc import Callable
from typing import Any

import pytest
import pytest_asyncio
import yaml
from httpx import ASGITransport, AsyncClient
from kubernetes import client

# Set test environment before importing settings
os.environ.setdefault("ENV", "development")
os.environ.setdefault("LOG_LEVEL", "DEBUG")
os.environ.setdefault("LOG_FORMAT", "text")
os.environ.setdefault("CONTROLLER_ENABLED", "false")

from app.errors import AlreadyExistsError, NotFoundError  # noqa: E402
from app.services import (  # noqa: E402
    CredentialResolver,
    GeneratorController,
    MembershipService,
    ProjectBindingService,
    Reconciler,
)

ARGOCD_NAMESPACE = "argocd"


class MockKubeClient:
    """In-memory stand-in for KubeClient.

    Stores secrets, clusters, generators and AppProjects, and raises the
    same errors the real client translates API failures into. Failures
    can be injected per operation and object name.
    """

    def __init__(self):
        self.secrets: dict[tuple[str, str], client.V1Secret] = {}
        self.clusters: list[dict[str, Any]] = []
        self.generators: dict[tuple[str, str], dict[str, Any]] = {}
        self.projects: dict[tuple[str, str], dict[str, Any]] = {}
        self.failures: dict[tuple[str, str], Exception] = {}
        self.calls: list[tuple[str, str | None, str | None]] = []
        self.reachable = True

    def fail(self, operation: str, name: str, error: Exception) -> None:
        self.failures[(operation, name)] = error

    def _record(self, operation: str, namespace: str | None, name: str | None) -> None:
        self.calls.append((operation, namespace, name))
        error = self.failures.get((operation, name or ""))
        if error is not None:
            raise error

    def calls_for(self, operation: str) -> list[tuple[str | None, str | None]]:
        return [(ns, name) for op, ns, name in self.calls if op == operation]

    async def get_secret(self, name: str, namespace: str) -> client.V1Secret:
        self._record("get_secret", namespace, name)
        try:
            return copy.deepcopy(self.secrets[(namespace, name)])
        except KeyError:
            raise NotFoundError("Secret", name, namespace) from None

    async def create_secret(self, body: client.V1Secret) -> client.V1Secret:
        meta = body.metadata
        self._record("create_secret", meta.namespace, meta.name)
        if (meta.namespace, meta.name) in self.secrets:
            raise AlreadyExistsError("Secret", meta.name, meta.namespace)
        self.secrets[(meta.namespace, meta.name)] = copy.deepcopy(body)
        return body

    async def replace_secret(self, body: client.V1Secret) -> client.V1Secret:
        meta = body.metadata
        self._record("replace_secret", meta.namespace, meta.name)
        if (meta.namespace, meta.name) not in self.secrets:
            raise NotFoundError("Secret", meta.name, meta.namespace)
        self.secrets[(meta.namespace, meta.name)] = copy.deepcopy(body)
        return body

    async def delete_secret(self, name: str, namespace: str) -> None:
        self._record("delete_secret", namespace, name)
        if self.secrets.pop((namespace, name), None) is None:
            raise NotFoundError("Secret", name, namespace)

    async def list_clusters(self) -> list[dict[str, Any]]:
        self._record("list_clusters", None, None)
        return copy.deepcopy(self.clusters)

    async def get_generator(self, name: str, namespace: str) -> dict[str, Any]:
        self._record("get_generator", namespace, name)
        try:
            return copy.deepcopy(self.generators[(namespace, name)])
        except KeyError:
            raise NotFoundError("Generator", name, namespace) from None

    async def list_generators(self) -> list[dict[str, Any]]:
        self._record("list_generators", None, None)
        return copy.deepcopy(list(self.generators.values()))

    async def get_app_project(self, name: str, namespace: str) -> dict[str, Any]:
        self._record("get_app_project", namespace, name)
        try:
            return copy.deepcopy(self.projects[(namespace, name)])
        except KeyError:
            raise NotFoundError("AppProject", name, namespace) from None

    async def replace_app_project(self, project: dict[str, Any]) -> dict[str, Any]:
        meta = project["metadata"]
        self._record("replace_app_project", meta["namespace"], meta["name"])
        self.projects[(meta["namespace"], meta["name"])] = copy.deepcopy(project)
        return project

    async def ping(self) -> bool:
        return self.reachable

    # Fixture helpers

    def add_generator(self, name: str, namespace: str = ARGOCD_NAMESPACE, project: str | None = None):
        spec = {"appProjectName": project} if project else {}
        self.generators[(namespace, name)] = {
            "apiVersion": "cluster.argoproj.io/v1alpha1",
            "kind": "Generator",
            "metadata": {"name": name, "namespace": namespace},
            "spec": spec,
        }

    def add_project(self, name: str, destinations: list[dict[str, Any]] | None = None):
        self.projects[(ARGOCD_NAMESPACE, name)] = {
            "apiVersion": "argoproj.io/v1alpha1",
            "kind": "AppProject",
            "metadata": {"name": name, "namespace": ARGOCD_NAMESPACE},
            "spec": {"destinations": list(destinations or [])},
        }

    def destinations(self, project: str) -> list[dict[str, Any]]:
        return self.projects[(ARGOCD_NAMESPACE, project)]["spec"]["destinations"]

    def add_cluster(
        self,
        name: str,
        namespace: str = "default",
        phase: str = "Provisioned",
        revision: str = "1",
        server: str | None = None,
        kubeconfig: bool = True,
    ) -> None:
        self.clusters.append(
            {
                "apiVersion": "cluster.x-k8s.io/v1beta1",
                "kind": "Cluster",
                "metadata": {"name": name, "namespace": namespace, "resourceVersion": revision},
                "status": {"phase": phase, "controlPlaneReady": phase == "Provisioned"},
            }
        )
        if kubeconfig:
            self.add_kubeconfig_secret(
                name, namespace, make_kubeconfig(name, server or f"https://{name}.example.com:6443")
            )

    def set_cluster(self, name: str, **changes: Any) -> None:
        for obj in self.clusters:
            if obj["metadata"]["name"] == name:
                if "phase" in changes:
                    obj["status"]["phase"] = changes["phase"]
                if "revision" in changes:
                    obj["metadata"]["resourceVersion"] = changes["revision"]
                return
        raise KeyError(name)

    def add_kubeconfig_secret(self, name: str, namespace: str, document: str) -> None:
        self.secrets[(namespace, f"{name}-kubeconfig")] = client.V1Secret(
            metadata=client.V1ObjectMeta(name=f"{name}-kubeconfig", namespace=namespace),
            data={"value": base64.b64encode(document.encode()).decode()},
        )

    def cluster_secret(self, cluster_name: str) -> client.V1Secret | None:
        return self.secrets.get((ARGOCD_NAMESPACE, f"{cluster_name}-cluster-secret"))


def make_kubeconfig(
    cluster_name: str,
    server: str,
    context: str = "ctx1",
    user: str | None = None,
) -> str:
    """Build a Cluster API style admin kubeconfig document."""
    user = user or f"{cluster_name}-admin"
    return yaml.safe_dump(
        {
            "apiVersion": "v1",
            "kind": "Config",
            "clusters": [
                {
                    "name": cluster_name,
                    "cluster": {
                        "server": server,
                        "certificate-authority-data": "Q0EtREFUQQ==",
                    },
                }
            ],
            "contexts": [{"name": context, "context": {"cluster": cluster_name, "user": user}}],
            "current-context": context,
            "users": [
                {
                    "name": user,
                    "user": {
                        "client-certificate-data": "Q0VSVC1EQVRB",
                        "client-key-data": "S0VZLURBVEE=",
                    },
                }
            ],
        }
    )


@pytest.fixture
def kubeconfig_factory() -> Callable[..., str]:
    return make_kubeconfig


@pytest.fixture
def mock_kube() -> MockKubeClient:
    """Create mock Kubernetes client."""
    return MockKubeClient()


@pytest.fixture
def resolver(mock_kube) -> CredentialResolver:
    return CredentialResolver(mock_kube)


@pytest.fixture
def membership(mock_kube) -> MembershipService:
    return MembershipService(mock_kube, argocd_namespace=ARGOCD_NAMESPACE)


@pytest.fixture
def binding(mock_kube) -> ProjectBindingService:
    return ProjectBindingService(mock_kube, argocd_namespace=ARGOCD_NAMESPACE)


@pytest.fixture
def reconciler(mock_kube, resolver, membership, binding) -> Reconciler:
    return Reconciler(mock_kube, resolver, membership, binding, requeue_after=60.0)


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def controller(mock_kube, reconciler, clock) -> GeneratorController:
    return GeneratorController(
        mock_kube,
        reconciler,
        resync_interval=30.0,
        retry_base=5.0,
        retry_max=40.0,
        clock=clock,
    )


@pytest_asyncio.fixture
async def test_client(mock_kube, controller):
    """Create test HTTP client."""
    from app.main import app, settings

    # Override app state; ASGITransport does not run the lifespan
    app.state.settings = settings.model_copy(update={"controller_enabled": False})
    app.state.kube = mock_kube
    app.state.controller = controller

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as http:
        yield http
