"""Argo CD cluster secret management.

Argo CD picks up declarative clusters from Secrets labelled
``argocd.argoproj.io/secret-type: cluster`` in its namespace. One such
secret is kept per Cluster API cluster, named ``<cluster>-cluster-secret``.
"""

from __future__ import annotations

from typing import Literal

from shared.models import (
    ANNOTATION_REVISION,
    LABEL_CLUSTER_NAME,
    LABEL_PART_OF,
    LABEL_SECRET_TYPE,
    Cluster,
    KubeConfig,
    MembershipRecord,
    cluster_secret_name,
)
from shared.observability import get_logger

from ..clients.kube import KubeClient
from ..errors import AlreadyExistsError, NotFoundError

logger = get_logger(__name__)


class MembershipService:
    """Registers and deregisters clusters with Argo CD."""

    def __init__(self, kube: KubeClient, argocd_namespace: str = "argocd"):
        self._kube = kube
        self.argocd_namespace = argocd_namespace

    def build_record(self, kubeconfig: KubeConfig, cluster: Cluster) -> MembershipRecord:
        """Compute the desired cluster secret.

        The result depends only on the kubeconfig and the cluster's
        revision, so racing passes produce identical records.
        """
        cluster_name = kubeconfig.cluster_name
        return MembershipRecord(
            name=cluster_secret_name(cluster_name),
            namespace=self.argocd_namespace,
            labels={
                LABEL_PART_OF: "argocd",
                LABEL_SECRET_TYPE: "cluster",
                LABEL_CLUSTER_NAME: cluster_name,
            },
            annotations={
                ANNOTATION_REVISION: cluster.resource_version,
            },
            string_data={
                "name": cluster_name,
                "server": kubeconfig.server,
                "config": kubeconfig.cluster_config().to_json(),
            },
        )

    async def register(
        self, kubeconfig: KubeConfig, cluster: Cluster
    ) -> Literal["created", "updated"]:
        """Create the cluster secret, or fully replace an existing one.

        No merge and no resourceVersion check: the record built in this pass
        overwrites whatever is stored.
        """
        record = self.build_record(kubeconfig, cluster)
        body = record.to_k8s()

        try:
            await self._kube.create_secret(body)
        except AlreadyExistsError:
            await self._kube.replace_secret(body)
            logger.info(
                "Updated Argo CD cluster secret",
                secret=record.name,
                cluster=cluster.key,
                revision=cluster.resource_version,
            )
            return "updated"

        logger.info(
            "Created Argo CD cluster secret",
            secret=record.name,
            cluster=cluster.key,
            revision=cluster.resource_version,
        )
        return "created"

    async def deregister(self, kubeconfig: KubeConfig) -> bool:
        """Delete the cluster secret.

        Returns:
            True if deleted, False if it was already absent
        """
        cluster_name = kubeconfig.cluster_name
        secret_name = cluster_secret_name(cluster_name)
        logger.info("Deleting Argo CD cluster secret", cluster_name=cluster_name, secret=secret_name)

        try:
            await self._kube.delete_secret(secret_name, self.argocd_namespace)
        except NotFoundError:
            return False
        return True
