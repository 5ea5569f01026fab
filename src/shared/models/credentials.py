"""Kubeconfig credential bundle models.

A kubeconfig holds named clusters, users and contexts. Only the current
context is used: it selects the cluster endpoint and the client
certificate pair that Argo CD will use to reach the cluster.
"""

import json
from typing import Any

import yaml
from pydantic import Field, ValidationError

from .base import RegisterBaseModel


class KubeConfigError(ValueError):
    """Raised when a kubeconfig payload cannot be decoded."""

    pass


class KubeCluster(RegisterBaseModel):
    """Cluster entry of a kubeconfig."""

    server: str
    certificate_authority_data: str | None = Field(
        default=None, alias="certificate-authority-data"
    )
    insecure_skip_tls_verify: bool = Field(default=False, alias="insecure-skip-tls-verify")
    tls_server_name: str | None = Field(default=None, alias="tls-server-name")


class KubeUser(RegisterBaseModel):
    """User (auth info) entry of a kubeconfig."""

    client_certificate_data: str | None = Field(default=None, alias="client-certificate-data")
    client_key_data: str | None = Field(default=None, alias="client-key-data")


class KubeContext(RegisterBaseModel):
    """Context entry of a kubeconfig."""

    cluster: str
    user: str = ""
    namespace: str | None = None


class TLSClientConfig(RegisterBaseModel):
    """TLS settings in Argo CD's cluster config format.

    Data fields keep the base64 encoding they have in the kubeconfig,
    which is also how Argo CD expects them.
    """

    insecure: bool | None = None
    server_name: str | None = Field(default=None, alias="serverName")
    ca_data: str | None = Field(default=None, alias="caData")
    cert_data: str | None = Field(default=None, alias="certData")
    key_data: str | None = Field(default=None, alias="keyData")


class ClusterConfig(RegisterBaseModel):
    """Argo CD cluster secret ``config`` payload."""

    tls_client_config: TLSClientConfig = Field(alias="tlsClientConfig")

    def to_json(self) -> str:
        """Serialize to the compact JSON blob stored in the cluster secret."""
        return json.dumps(
            self.model_dump(by_alias=True, exclude_none=True),
            separators=(",", ":"),
        )


def _named(entries: Any, field: str, model: type[RegisterBaseModel]) -> dict[str, Any]:
    """Convert a kubeconfig list of ``{name, <field>}`` entries into a dict."""
    if entries is None:
        return {}
    if not isinstance(entries, list):
        raise KubeConfigError(f"kubeconfig {field} section is not a list")
    result: dict[str, Any] = {}
    for entry in entries:
        if not isinstance(entry, dict) or not isinstance(entry.get("name"), str):
            raise KubeConfigError(f"kubeconfig {field} entry without a name")
        result[entry["name"]] = model.model_validate(entry.get(field) or {})
    return result


class KubeConfig(RegisterBaseModel):
    """Decoded multi-context kubeconfig."""

    clusters: dict[str, KubeCluster] = Field(default_factory=dict)
    users: dict[str, KubeUser] = Field(default_factory=dict)
    contexts: dict[str, KubeContext] = Field(default_factory=dict)
    current_context: str = ""

    @classmethod
    def load(cls, payload: bytes | str) -> "KubeConfig":
        """Parse a kubeconfig document (YAML or JSON).

        Raises:
            KubeConfigError: If the document is malformed or its current
                context does not resolve to a cluster.
        """
        try:
            doc = yaml.safe_load(payload)
        except yaml.YAMLError as e:
            raise KubeConfigError(f"invalid kubeconfig document: {e}") from e

        if not isinstance(doc, dict):
            raise KubeConfigError("kubeconfig document is not a mapping")

        try:
            config = cls(
                clusters=_named(doc.get("clusters"), "cluster", KubeCluster),
                users=_named(doc.get("users"), "user", KubeUser),
                contexts=_named(doc.get("contexts"), "context", KubeContext),
                current_context=doc.get("current-context") or "",
            )
        except ValidationError as e:
            raise KubeConfigError(f"invalid kubeconfig entry: {e}") from e

        # Fail at decode time rather than when the first accessor runs
        config.active_context()
        config.active_cluster()
        return config

    def active_context(self) -> KubeContext:
        if not self.current_context:
            raise KubeConfigError("kubeconfig has no current-context")
        try:
            return self.contexts[self.current_context]
        except KeyError:
            raise KubeConfigError(
                f"current-context {self.current_context!r} not found in kubeconfig"
            ) from None

    def active_cluster(self) -> KubeCluster:
        name = self.cluster_name
        try:
            return self.clusters[name]
        except KeyError:
            raise KubeConfigError(f"cluster {name!r} not found in kubeconfig") from None

    def active_user(self) -> KubeUser:
        # A context may reference a user that is absent; treat it as no client cert
        return self.users.get(self.auth_name, KubeUser())

    @property
    def cluster_name(self) -> str:
        return self.active_context().cluster

    @property
    def auth_name(self) -> str:
        return self.active_context().user

    @property
    def server(self) -> str:
        return self.active_cluster().server

    def tls_client_config(self) -> TLSClientConfig:
        cluster = self.active_cluster()
        user = self.active_user()
        return TLSClientConfig(
            insecure=True if cluster.insecure_skip_tls_verify else None,
            server_name=cluster.tls_server_name,
            ca_data=cluster.certificate_authority_data,
            cert_data=user.client_certificate_data,
            key_data=user.client_key_data,
        )

    def cluster_config(self) -> ClusterConfig:
        return ClusterConfig(tls_client_config=self.tls_client_config())
