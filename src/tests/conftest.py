"""Pytest configuration and shared fixtures."""

import os
from typing import Any

import pytest

# Set test environment before importing settings
os.environ["ENV"] = "development"
os.environ["LOG_LEVEL"] = "DEBUG"
os.environ["LOG_FORMAT"] = "text"


@pytest.fixture
def sample_cluster_object() -> dict[str, Any]:
    """Sample Cluster API custom object."""
    return {
        "apiVersion": "cluster.x-k8s.io/v1beta1",
        "kind": "Cluster",
        "metadata": {
            "name": "foo",
            "namespace": "capi-clusters",
            "resourceVersion": "5",
        },
        "status": {
            "phase": "Provisioned",
            "controlPlaneReady": True,
        },
    }


@pytest.fixture
def sample_kubeconfig() -> str:
    """Sample multi-context kubeconfig document."""
    return """\
apiVersion: v1
kind: Config
clusters:
- name: foo
  cluster:
    server: https://1.2.3.4
    certificate-authority-data: Q0EtREFUQQ==
- name: bar
  cluster:
    server: https://5.6.7.8
contexts:
- name: ctx1
  context:
    cluster: foo
    user: foo-admin
- name: ctx2
  context:
    cluster: bar
    user: bar-admin
current-context: ctx1
users:
- name: foo-admin
  user:
    client-certificate-data: Q0VSVC1EQVRB
    client-key-data: S0VZLURBVEE=
- name: bar-admin
  user:
    token: abc
"""


# =============================================================================
# Markers
# =============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests (no external dependencies)")
    config.addinivalue_line(
        "markers", "integration: Integration tests (require external services)"
    )
