"""Reconciliation pass result models."""

from datetime import datetime, timezone
from enum import Enum

from pydantic import Field

from .base import RegisterBaseModel


class ClusterAction(str, Enum):
    """What a pass did for one cluster."""

    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"
    ALREADY_ABSENT = "already_absent"
    SKIPPED = "skipped"
    FAILED = "failed"


class ClusterOutcome(RegisterBaseModel):
    """Per-cluster outcome within a pass."""

    cluster: str = Field(description="Cluster key (namespace/name)")
    action: ClusterAction
    bound: bool = Field(default=False, description="Whether the AppProject was updated")
    error: str | None = None


class PassResult(RegisterBaseModel):
    """Outcome of one reconciliation pass for a Generator."""

    generator: str = Field(description="Generator key (namespace/name)")
    pass_id: str
    started_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    finished_at: datetime | None = None
    outcomes: list[ClusterOutcome] = Field(default_factory=list)
    requeue_after: float | None = Field(
        default=None, description="Seconds until the next pass; unset on failure"
    )

    def count(self, action: ClusterAction) -> int:
        return sum(1 for o in self.outcomes if o.action == action)

    @property
    def failed(self) -> list[ClusterOutcome]:
        return [o for o in self.outcomes if o.action == ClusterAction.FAILED]


class GeneratorStatus(RegisterBaseModel):
    """Controller view of one Generator's scheduling state."""

    generator: str
    last_result: PassResult | None = None
    last_error: str | None = None
    consecutive_failures: int = 0
    next_run_at: datetime | None = None
