"""AppProject destination binding."""

from __future__ import annotations

from shared.models import Generator, KubeConfig, ProjectDestination, project_destinations
from shared.observability import get_logger

from ..clients.kube import KubeClient

logger = get_logger(__name__)


class ProjectBindingService:
    """Adds registered clusters to the Generator's AppProject destinations."""

    def __init__(
        self,
        kube: KubeClient,
        argocd_namespace: str = "argocd",
        allow_duplicates: bool = False,
    ):
        self._kube = kube
        self.argocd_namespace = argocd_namespace
        # Legacy behaviour appended the destination on every pass
        self.allow_duplicates = allow_duplicates

    async def bind(self, kubeconfig: KubeConfig, generator: Generator) -> bool:
        """Ensure the cluster is a destination of the Generator's AppProject.

        Returns:
            True if the AppProject was updated

        Raises:
            NotFoundError: The AppProject does not exist.
        """
        if generator.app_project_name is None:
            return False

        cluster_name = kubeconfig.cluster_name
        project = await self._kube.get_app_project(
            generator.app_project_name, self.argocd_namespace
        )

        destinations = project_destinations(project)
        if not self.allow_duplicates and any(d.name == cluster_name for d in destinations):
            logger.debug(
                "Cluster already an AppProject destination",
                project=generator.app_project_name,
                cluster_name=cluster_name,
            )
            return False

        spec = project.setdefault("spec", {})
        spec["destinations"] = list(spec.get("destinations") or []) + [
            ProjectDestination(name=cluster_name).to_k8s()
        ]
        await self._kube.replace_app_project(project)

        logger.info(
            "Added cluster to AppProject destinations",
            project=generator.app_project_name,
            cluster_name=cluster_name,
        )
        return True
