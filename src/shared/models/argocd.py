"""Argo CD object models: cluster secrets and AppProject destinations."""

from typing import Any

from kubernetes import client
from pydantic import Field

from .base import RegisterBaseModel

CLUSTER_SECRET_SUFFIX = "-cluster-secret"

# Labels Argo CD uses to discover declarative cluster secrets
LABEL_PART_OF = "app.kubernetes.io/part-of"
LABEL_SECRET_TYPE = "argocd.argoproj.io/secret-type"
LABEL_CLUSTER_NAME = "cluster.x-k8s.io/cluster-name"
ANNOTATION_REVISION = "cluster.x-k8s.io/revision"


def cluster_secret_name(cluster_name: str) -> str:
    """Name of the Argo CD cluster secret for a cluster."""
    return f"{cluster_name}{CLUSTER_SECRET_SUFFIX}"


class MembershipRecord(RegisterBaseModel):
    """Desired Argo CD cluster secret for one cluster."""

    name: str
    namespace: str
    labels: dict[str, str] = Field(default_factory=dict)
    annotations: dict[str, str] = Field(default_factory=dict)
    string_data: dict[str, str] = Field(default_factory=dict)

    @property
    def cluster_name(self) -> str:
        return self.string_data.get("name", "")

    @property
    def revision(self) -> str | None:
        return self.annotations.get(ANNOTATION_REVISION)

    def to_k8s(self) -> client.V1Secret:
        """Render as a Kubernetes Secret body."""
        return client.V1Secret(
            api_version="v1",
            kind="Secret",
            metadata=client.V1ObjectMeta(
                name=self.name,
                namespace=self.namespace,
                labels=dict(self.labels),
                annotations=dict(self.annotations),
            ),
            type="Opaque",
            string_data=dict(self.string_data),
        )


class ProjectDestination(RegisterBaseModel):
    """An AppProject ``spec.destinations`` entry."""

    name: str | None = None
    server: str | None = None
    namespace: str | None = None

    def to_k8s(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)

    @classmethod
    def from_k8s(cls, obj: dict[str, Any]) -> "ProjectDestination":
        return cls(
            name=obj.get("name"),
            server=obj.get("server"),
            namespace=obj.get("namespace"),
        )


def project_destinations(project: dict[str, Any]) -> list[ProjectDestination]:
    """Read the destination list of an AppProject custom object."""
    spec = project.get("spec") or {}
    return [ProjectDestination.from_k8s(d) for d in spec.get("destinations") or []]
