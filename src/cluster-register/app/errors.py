"""Error taxonomy for the register controller.

Kubernetes API failures are translated into these at the client boundary
so services never inspect HTTP status codes.
"""

from __future__ import annotations

from typing import Any


class RegisterError(Exception):
    """Base class for controller errors."""

    pass


class NotFoundError(RegisterError):
    """Raised when a Kubernetes object does not exist."""

    def __init__(self, kind: str, name: str, namespace: str | None = None):
        self.kind = kind
        self.name = name
        self.namespace = namespace
        where = f"{namespace}/{name}" if namespace else name
        super().__init__(f"{kind} '{where}' not found")


class AlreadyExistsError(RegisterError):
    """Raised when creating a Kubernetes object whose name is taken."""

    def __init__(self, kind: str, name: str, namespace: str | None = None):
        self.kind = kind
        self.name = name
        self.namespace = namespace
        where = f"{namespace}/{name}" if namespace else name
        super().__init__(f"{kind} '{where}' already exists")


class TransientError(RegisterError):
    """Raised for API or network failures; the pass is retried later."""

    def __init__(self, message: str, status: int | None = None):
        self.status = status
        super().__init__(message)


class CredentialNotFoundError(NotFoundError):
    """Raised when a cluster's kubeconfig secret does not exist."""

    def __init__(self, name: str, namespace: str):
        super().__init__("Secret", name, namespace)


class CredentialDecodeError(RegisterError):
    """Raised when a kubeconfig secret cannot be decoded."""

    pass


class ReconcileError(RegisterError):
    """Raised after a pass that kept going past failed clusters.

    Carries the error of every cluster that failed, keyed by cluster.
    """

    def __init__(
        self,
        generator: str,
        errors: dict[str, Exception],
        result: Any = None,
    ):
        self.generator = generator
        self.errors = errors
        # Partial PassResult of the pass, when available
        self.result = result
        names = ", ".join(sorted(errors))
        super().__init__(
            f"reconcile of generator '{generator}' failed for {len(errors)} cluster(s): {names}"
        )
