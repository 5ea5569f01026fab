"""Tests for the Kubernetes client wrapper."""

from unittest.mock import MagicMock, patch

import pytest
import urllib3
from kubernetes import client
from kubernetes.client.rest import ApiException

from app.clients.kube import KubeClient, load_kube_config
from app.errors import AlreadyExistsError, NotFoundError, TransientError


@pytest.fixture
def core():
    return MagicMock(spec=client.CoreV1Api)


@pytest.fixture
def custom():
    return MagicMock(spec=client.CustomObjectsApi)


@pytest.fixture
def kube(core, custom):
    return KubeClient(core=core, custom=custom, version=MagicMock(spec=client.VersionApi))


@pytest.fixture
def secret_body():
    return client.V1Secret(
        metadata=client.V1ObjectMeta(name="foo-cluster-secret", namespace="argocd"),
        string_data={"name": "foo"},
    )


class TestErrorTranslation:
    async def test_not_found(self, kube, core):
        core.read_namespaced_secret.side_effect = ApiException(status=404)

        with pytest.raises(NotFoundError) as exc_info:
            await kube.get_secret("foo-kubeconfig", "capi")

        assert exc_info.value.kind == "Secret"
        assert exc_info.value.name == "foo-kubeconfig"
        assert exc_info.value.namespace == "capi"

    async def test_already_exists(self, kube, core, secret_body):
        core.create_namespaced_secret.side_effect = ApiException(status=409)

        with pytest.raises(AlreadyExistsError):
            await kube.create_secret(secret_body)

    async def test_replace_conflict_is_transient(self, kube, custom):
        """Test a 409 on update is a retryable conflict, not an existing object."""
        custom.replace_namespaced_custom_object.side_effect = ApiException(status=409, reason="Conflict")
        project = {"metadata": {"name": "fleet", "namespace": "argocd", "resourceVersion": "7"}}

        with pytest.raises(TransientError, match="conflict") as exc_info:
            await kube.replace_app_project(project)

        assert not isinstance(exc_info.value, AlreadyExistsError)
        assert exc_info.value.status == 409

    async def test_other_status_is_transient(self, kube, core):
        core.delete_namespaced_secret.side_effect = ApiException(status=500, reason="Internal")

        with pytest.raises(TransientError) as exc_info:
            await kube.delete_secret("foo-cluster-secret", "argocd")

        assert exc_info.value.status == 500

    async def test_connection_errors_are_transient(self, kube, custom):
        custom.list_cluster_custom_object.side_effect = urllib3.exceptions.MaxRetryError(
            None, "/apis"
        )

        with pytest.raises(TransientError):
            await kube.list_clusters()


class TestSecrets:
    async def test_create_uses_body_namespace(self, kube, core, secret_body):
        await kube.create_secret(secret_body)

        core.create_namespaced_secret.assert_called_once_with(namespace="argocd", body=secret_body)

    async def test_replace_by_name(self, kube, core, secret_body):
        await kube.replace_secret(secret_body)

        core.replace_namespaced_secret.assert_called_once_with(
            name="foo-cluster-secret", namespace="argocd", body=secret_body
        )


class TestCustomObjects:
    async def test_list_clusters_all_namespaces(self, kube, custom):
        custom.list_cluster_custom_object.return_value = {"items": [{"metadata": {"name": "foo"}}]}

        items = await kube.list_clusters()

        assert items == [{"metadata": {"name": "foo"}}]
        custom.list_cluster_custom_object.assert_called_once_with(
            group="cluster.x-k8s.io", version="v1beta1", plural="clusters"
        )

    async def test_get_generator(self, kube, custom):
        custom.get_namespaced_custom_object.return_value = {"metadata": {"name": "default"}}

        await kube.get_generator("default", "argocd")

        custom.get_namespaced_custom_object.assert_called_once_with(
            group="cluster.argoproj.io",
            version="v1alpha1",
            namespace="argocd",
            plural="generators",
            name="default",
        )

    async def test_replace_app_project(self, kube, custom):
        project = {"metadata": {"name": "fleet", "namespace": "argocd"}, "spec": {}}

        await kube.replace_app_project(project)

        custom.replace_namespaced_custom_object.assert_called_once_with(
            group="argoproj.io",
            version="v1alpha1",
            namespace="argocd",
            plural="appprojects",
            name="fleet",
            body=project,
        )


class TestPing:
    async def test_reachable(self, kube):
        assert await kube.ping() is True

    async def test_unreachable(self, kube):
        kube.version.get_code.side_effect = ApiException(status=503)

        assert await kube.ping() is False


class TestLoadConfig:
    def test_falls_back_to_kubeconfig(self):
        """Test in-cluster config is tried first, then the local kubeconfig."""
        with patch("app.clients.kube.config") as mock_config:
            mock_config.ConfigException = Exception
            mock_config.load_incluster_config.side_effect = Exception("not in cluster")

            load_kube_config()

            mock_config.load_kube_config.assert_called_once()

    def test_forced_in_cluster(self):
        with patch("app.clients.kube.config") as mock_config:
            load_kube_config(in_cluster=True)

            mock_config.load_incluster_config.assert_called_once()
            mock_config.load_kube_config.assert_not_called()
