"""Cluster API and Generator resource models.

Both resources are owned by other controllers; these models are read-only
views built from the custom-object dicts the Kubernetes API returns.
"""

from enum import Enum
from typing import Any

from pydantic import Field, field_validator

from .base import RegisterBaseModel

KUBECONFIG_SECRET_SUFFIX = "-kubeconfig"


class ClusterPhase(str, Enum):
    """Cluster API lifecycle phase."""

    PENDING = "Pending"
    PROVISIONING = "Provisioning"
    PROVISIONED = "Provisioned"
    DELETING = "Deleting"
    FAILED = "Failed"
    UNKNOWN = "Unknown"

    @classmethod
    def _missing_(cls, value: object) -> "ClusterPhase":
        return cls.UNKNOWN


class Cluster(RegisterBaseModel):
    """A Cluster API cluster as seen by the register controller."""

    name: str
    namespace: str
    phase: ClusterPhase = ClusterPhase.UNKNOWN
    control_plane_ready: bool = False
    resource_version: str = Field(default="", description="Revision token of the Cluster object")

    @field_validator("phase", mode="before")
    @classmethod
    def validate_phase(cls, v: Any) -> Any:
        # An unset status phase is reported as an empty string
        return v or ClusterPhase.UNKNOWN

    @property
    def key(self) -> str:
        return f"{self.namespace}/{self.name}"

    @property
    def is_deleting(self) -> bool:
        """Everything except Deleting is handled as an active cluster."""
        return self.phase == ClusterPhase.DELETING

    @property
    def kubeconfig_secret_name(self) -> str:
        return f"{self.name}{KUBECONFIG_SECRET_SUFFIX}"

    @classmethod
    def from_k8s(cls, obj: dict[str, Any]) -> "Cluster":
        """Create from a clusters.cluster.x-k8s.io custom object."""
        metadata = obj.get("metadata") or {}
        status = obj.get("status") or {}
        return cls(
            name=metadata["name"],
            namespace=metadata.get("namespace", "default"),
            phase=status.get("phase"),
            control_plane_ready=bool(status.get("controlPlaneReady", False)),
            resource_version=metadata.get("resourceVersion", ""),
        )


class Generator(RegisterBaseModel):
    """A Generator request object.

    The only field the controller consumes is the optional target
    AppProject; without one no project binding is done.
    """

    name: str
    namespace: str
    app_project_name: str | None = Field(default=None, alias="appProjectName")

    @field_validator("app_project_name")
    @classmethod
    def validate_app_project_name(cls, v: str | None) -> str | None:
        return v or None

    @property
    def key(self) -> str:
        return f"{self.namespace}/{self.name}"

    @classmethod
    def from_k8s(cls, obj: dict[str, Any]) -> "Generator":
        """Create from a generators.cluster.argoproj.io custom object."""
        metadata = obj.get("metadata") or {}
        spec = obj.get("spec") or {}
        return cls(
            name=metadata["name"],
            namespace=metadata.get("namespace", "default"),
            app_project_name=spec.get("appProjectName"),
        )
