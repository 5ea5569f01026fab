"""Reconciliation services."""

from .controller import GeneratorController
from .credential_resolver import CredentialResolver
from .membership_service import MembershipService
from .project_binding import ProjectBindingService
from .reconciler import Reconciler

__all__ = [
    "CredentialResolver",
    "GeneratorController",
    "MembershipService",
    "ProjectBindingService",
    "Reconciler",
]
