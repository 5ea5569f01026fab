"""Cluster kubeconfig resolution.

Cluster API stores the admin kubeconfig of every workload cluster in a
Secret named ``<cluster>-kubeconfig`` in the cluster's namespace, under
the ``value`` key.
"""

from __future__ import annotations

import base64
import binascii

from shared.models import Cluster, KubeConfig, KubeConfigError
from shared.observability import get_logger

from ..clients.kube import KubeClient
from ..errors import CredentialDecodeError, CredentialNotFoundError, NotFoundError

logger = get_logger(__name__)

KUBECONFIG_DATA_KEY = "value"


class CredentialResolver:
    """Reads and decodes cluster kubeconfig secrets. Has no side effects."""

    def __init__(self, kube: KubeClient):
        self._kube = kube

    async def resolve(self, cluster: Cluster) -> KubeConfig:
        """Retrieve and decode the kubeconfig of a cluster.

        Raises:
            CredentialNotFoundError: The kubeconfig secret does not exist yet
                (early provisioning) or anymore (late deletion).
            CredentialDecodeError: The secret exists but holds no usable
                kubeconfig.
            TransientError: Any other API failure.
        """
        secret_name = cluster.kubeconfig_secret_name

        try:
            secret = await self._kube.get_secret(secret_name, cluster.namespace)
        except NotFoundError as e:
            raise CredentialNotFoundError(secret_name, cluster.namespace) from e

        data = secret.data or {}
        if KUBECONFIG_DATA_KEY not in data:
            raise CredentialDecodeError(
                f"secret '{cluster.namespace}/{secret_name}' has no '{KUBECONFIG_DATA_KEY}' key"
            )

        try:
            payload = base64.b64decode(data[KUBECONFIG_DATA_KEY], validate=True)
            kubeconfig = KubeConfig.load(payload)
        except (binascii.Error, KubeConfigError) as e:
            raise CredentialDecodeError(
                f"secret '{cluster.namespace}/{secret_name}' holds an invalid kubeconfig: {e}"
            ) from e

        logger.debug(
            "Resolved cluster kubeconfig",
            cluster=cluster.key,
            context=kubeconfig.current_context,
            cluster_name=kubeconfig.cluster_name,
        )
        return kubeconfig
