"""Shared data models for Cluster Register.

All models follow these conventions:
- Timestamps: ISO 8601 format with timezone (UTC)
- Field names: lowercase snake_case, Kubernetes names via aliases
- Enums: uppercase SNAKE_CASE members
"""

# Base
from .base import RegisterBaseModel

# Argo CD objects
from .argocd import (
    ANNOTATION_REVISION,
    CLUSTER_SECRET_SUFFIX,
    LABEL_CLUSTER_NAME,
    LABEL_PART_OF,
    LABEL_SECRET_TYPE,
    MembershipRecord,
    ProjectDestination,
    cluster_secret_name,
    project_destinations,
)

# Cluster API / Generator
from .cluster import (
    KUBECONFIG_SECRET_SUFFIX,
    Cluster,
    ClusterPhase,
    Generator,
)

# Credential bundle
from .credentials import (
    ClusterConfig,
    KubeCluster,
    KubeConfig,
    KubeConfigError,
    KubeContext,
    KubeUser,
    TLSClientConfig,
)

# Pass results
from .reconcile import (
    ClusterAction,
    ClusterOutcome,
    GeneratorStatus,
    PassResult,
)

__all__ = [
    "RegisterBaseModel",
    # Argo CD
    "ANNOTATION_REVISION",
    "CLUSTER_SECRET_SUFFIX",
    "LABEL_CLUSTER_NAME",
    "LABEL_PART_OF",
    "LABEL_SECRET_TYPE",
    "MembershipRecord",
    "ProjectDestination",
    "cluster_secret_name",
    "project_destinations",
    # Cluster
    "KUBECONFIG_SECRET_SUFFIX",
    "Cluster",
    "ClusterPhase",
    "Generator",
    # Credentials
    "ClusterConfig",
    "KubeCluster",
    "KubeConfig",
    "KubeConfigError",
    "KubeContext",
    "KubeUser",
    "TLSClientConfig",
    # Reconcile
    "ClusterAction",
    "ClusterOutcome",
    "GeneratorStatus",
    "PassResult",
]
