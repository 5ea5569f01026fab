"""Reconciliation pass for a Generator.

A pass is level-triggered: it reads the Generator and every Cluster,
derives the desired Argo CD state from scratch, and applies it with
idempotent create/replace/delete calls. Nothing is kept between passes,
so a pass converges from whatever state the stores are in no matter how
it was triggered.
"""

from __future__ import annotations

from datetime import datetime, timezone
from uuid import uuid4

from shared.models import (
    Cluster,
    ClusterAction,
    ClusterOutcome,
    Generator,
    PassResult,
)
from shared.observability import PassContext, get_logger

from ..clients.kube import KubeClient
from ..errors import CredentialNotFoundError, ReconcileError, RegisterError
from .credential_resolver import CredentialResolver
from .membership_service import MembershipService
from .project_binding import ProjectBindingService

logger = get_logger(__name__)

DEFAULT_REQUEUE_AFTER_SECONDS = 60.0


class Reconciler:
    """Runs reconciliation passes.

    Per cluster, every pass:
    1. Resolve the kubeconfig secret
    2. Deleting clusters: delete the Argo CD cluster secret
    3. Other clusters: create or replace the cluster secret, then bind the
       cluster to the Generator's AppProject

    By default the first failing cluster aborts the pass. With
    ``isolate_failures`` every cluster is attempted and the failures are
    raised together as a ReconcileError once the pass is over.
    """

    def __init__(
        self,
        kube: KubeClient,
        resolver: CredentialResolver,
        membership: MembershipService,
        binding: ProjectBindingService,
        requeue_after: float = DEFAULT_REQUEUE_AFTER_SECONDS,
        isolate_failures: bool = False,
    ):
        self._kube = kube
        self.resolver = resolver
        self.membership = membership
        self.binding = binding
        self.requeue_after = requeue_after
        self.isolate_failures = isolate_failures

    async def reconcile(self, namespace: str, name: str) -> PassResult:
        """Run one pass for the Generator ``namespace/name``.

        Returns:
            PassResult with ``requeue_after`` set to the follow-up delay

        Raises:
            NotFoundError: The Generator does not exist.
            RegisterError: A cluster failed (fail-fast mode).
            ReconcileError: One or more clusters failed (isolated mode).
        """
        key = f"{namespace}/{name}"
        pass_id = uuid4().hex[:12]

        with PassContext(pass_id=pass_id, generator=key):
            generator = Generator.from_k8s(await self._kube.get_generator(name, namespace))
            clusters = [Cluster.from_k8s(obj) for obj in await self._kube.list_clusters()]
            logger.info("Starting reconcile pass", clusters=len(clusters))

            result = PassResult(generator=key, pass_id=pass_id)
            errors: dict[str, Exception] = {}

            for cluster in clusters:
                logger.info(
                    "Found cluster",
                    phase=cluster.phase.value,
                    control_plane_ready=cluster.control_plane_ready,
                    revision=cluster.resource_version,
                    name=cluster.name,
                )
                try:
                    outcome = await self.reconcile_cluster(cluster, generator)
                except RegisterError as e:
                    if not self.isolate_failures:
                        logger.error("Cluster reconcile failed", cluster=cluster.key, error=str(e))
                        raise
                    logger.warning("Cluster reconcile failed", cluster=cluster.key, error=str(e))
                    errors[cluster.key] = e
                    outcome = ClusterOutcome(
                        cluster=cluster.key, action=ClusterAction.FAILED, error=str(e)
                    )
                result.outcomes.append(outcome)

            result.finished_at = datetime.now(timezone.utc)
            if errors:
                raise ReconcileError(key, errors, result=result)

            result.requeue_after = self.requeue_after
            logger.info(
                "Reconcile pass complete",
                created=result.count(ClusterAction.CREATED),
                updated=result.count(ClusterAction.UPDATED),
                deleted=result.count(ClusterAction.DELETED),
                skipped=result.count(ClusterAction.SKIPPED),
                requeue_after=self.requeue_after,
            )
            return result

    async def reconcile_cluster(self, cluster: Cluster, generator: Generator) -> ClusterOutcome:
        """Converge Argo CD state for a single cluster."""
        if cluster.is_deleting:
            try:
                kubeconfig = await self.resolver.resolve(cluster)
            except CredentialNotFoundError:
                # Kubeconfig already gone, nothing left to clean up
                logger.debug("Skipping deleting cluster without kubeconfig", cluster=cluster.key)
                return ClusterOutcome(cluster=cluster.key, action=ClusterAction.SKIPPED)

            deleted = await self.membership.deregister(kubeconfig)
            return ClusterOutcome(
                cluster=cluster.key,
                action=ClusterAction.DELETED if deleted else ClusterAction.ALREADY_ABSENT,
            )

        kubeconfig = await self.resolver.resolve(cluster)
        action = await self.membership.register(kubeconfig, cluster)
        bound = await self.binding.bind(kubeconfig, generator)
        return ClusterOutcome(cluster=cluster.key, action=ClusterAction(action), bound=bound)
