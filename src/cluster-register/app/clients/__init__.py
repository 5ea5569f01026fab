"""Clients for external systems."""

from .kube import KubeClient, load_kube_config

__all__ = ["KubeClient", "load_kube_config"]
