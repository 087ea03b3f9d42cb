"""Unit tests for Kubernetes utility functions."""

import json
from unittest.mock import MagicMock, patch

import pytest
import yaml
from kubernetes import config
from kubernetes.client.rest import ApiException
from urllib3.exceptions import MaxRetryError

from crd_extractor.errors import (
    ClusterAuthError,
    ClusterUnreachableError,
    ConfigurationError,
    KubernetesAPIError,
    ResourceNotFoundError,
)
from crd_extractor.utils.kubernetes import (
    fetch_openapi_v2,
    get_kubernetes_client,
    list_crd_names,
    read_crd_document,
    translate_api_exception,
)


def raw_response(payload) -> MagicMock:
    response = MagicMock()
    response.data = json.dumps(payload).encode()
    return response


@pytest.fixture
def mock_extensions_api():
    api = MagicMock()
    with patch(
        "crd_extractor.utils.kubernetes.client.ApiextensionsV1Api", return_value=api
    ):
        yield api


class TestListCrdNames:
    """Test listing CRD names."""

    def test_sorted_names(self, mock_extensions_api):
        mock_extensions_api.list_custom_resource_definition.return_value = raw_response(
            {
                "items": [
                    {"metadata": {"name": "widgets.example.com"}},
                    {"metadata": {"name": "certificates.cert-manager.io"}},
                ]
            }
        )

        names = list_crd_names(MagicMock())

        assert names == ["certificates.cert-manager.io", "widgets.example.com"]
        kwargs = mock_extensions_api.list_custom_resource_definition.call_args[1]
        assert kwargs["_preload_content"] is False

    def test_empty_cluster(self, mock_extensions_api):
        mock_extensions_api.list_custom_resource_definition.return_value = raw_response(
            {"items": []}
        )

        assert list_crd_names(MagicMock()) == []

    def test_forbidden(self, mock_extensions_api):
        mock_extensions_api.list_custom_resource_definition.side_effect = ApiException(
            status=403, reason="Forbidden"
        )

        with pytest.raises(ClusterAuthError, match="HTTP 403"):
            list_crd_names(MagicMock())

    def test_connection_failure(self, mock_extensions_api):
        mock_extensions_api.list_custom_resource_definition.side_effect = MaxRetryError(
            pool=None, url="/apis/apiextensions.k8s.io/v1/customresourcedefinitions"
        )

        with pytest.raises(ClusterUnreachableError):
            list_crd_names(MagicMock())


class TestReadCrdDocument:
    """Test fetching a single CRD document."""

    def test_returns_yaml(self, mock_extensions_api):
        crd = {
            "apiVersion": "apiextensions.k8s.io/v1",
            "kind": "CustomResourceDefinition",
            "metadata": {"name": "widgets.example.com"},
            "spec": {"group": "example.com"},
        }
        mock_extensions_api.read_custom_resource_definition.return_value = raw_response(crd)

        document = read_crd_document(MagicMock(), "widgets.example.com")

        assert yaml.safe_load(document) == crd
        assert document.startswith(b"apiVersion:")
        mock_extensions_api.read_custom_resource_definition.assert_called_once_with(
            "widgets.example.com", _preload_content=False
        )

    def test_not_found(self, mock_extensions_api):
        mock_extensions_api.read_custom_resource_definition.side_effect = ApiException(
            status=404, reason="Not Found"
        )

        with pytest.raises(ResourceNotFoundError) as exc_info:
            read_crd_document(MagicMock(), "widgets.example.com")

        assert exc_info.value.name == "widgets.example.com"
        assert not exc_info.value.retryable

    def test_server_error_is_retryable(self, mock_extensions_api):
        mock_extensions_api.read_custom_resource_definition.side_effect = ApiException(
            status=503, reason="Service Unavailable"
        )

        with pytest.raises(KubernetesAPIError) as exc_info:
            read_crd_document(MagicMock(), "widgets.example.com")

        assert exc_info.value.retryable
        assert exc_info.value.status == 503


class TestFetchOpenapiV2:
    """Test fetching the aggregate OpenAPI document."""

    def test_returns_body(self):
        api_client = MagicMock()
        api_client.call_api.return_value.data = b'{"swagger": "2.0"}'

        assert fetch_openapi_v2(api_client) == b'{"swagger": "2.0"}'
        args, kwargs = api_client.call_api.call_args
        assert args == ("/openapi/v2", "GET")
        assert kwargs["_preload_content"] is False

    def test_unauthorized(self):
        api_client = MagicMock()
        api_client.call_api.side_effect = ApiException(status=401, reason="Unauthorized")

        with pytest.raises(ClusterAuthError):
            fetch_openapi_v2(api_client)


class TestTranslateApiException:
    """Test mapping of ApiException onto extractor errors."""

    def test_transport_failure(self):
        error = translate_api_exception(ApiException(status=0, reason="timeout"), "Op")
        assert isinstance(error, ClusterUnreachableError)
        assert error.retryable

    def test_throttling_is_retryable(self):
        error = translate_api_exception(
            ApiException(status=429, reason="Too Many Requests"), "Op"
        )
        assert isinstance(error, KubernetesAPIError)
        assert error.retryable

    def test_client_error_not_retryable(self):
        error = translate_api_exception(ApiException(status=422, reason="Invalid"), "Op")
        assert not error.retryable
        assert "reason: Invalid" in str(error)


class TestGetKubernetesClient:
    """Test client configuration loading."""

    @patch("crd_extractor.utils.kubernetes.config.load_kube_config")
    @patch("crd_extractor.utils.kubernetes.config.load_incluster_config")
    def test_falls_back_to_kubeconfig(self, mock_incluster, mock_kubeconfig):
        mock_incluster.side_effect = config.ConfigException("not in cluster")

        get_kubernetes_client()

        mock_kubeconfig.assert_called_once_with()

    @patch("crd_extractor.utils.kubernetes.config.load_kube_config")
    @patch("crd_extractor.utils.kubernetes.config.load_incluster_config")
    def test_explicit_context_skips_incluster(self, mock_incluster, mock_kubeconfig):
        get_kubernetes_client(context="staging")

        mock_incluster.assert_not_called()
        mock_kubeconfig.assert_called_once_with(config_file=None, context="staging")

    @patch("crd_extractor.utils.kubernetes.config.load_kube_config")
    @patch("crd_extractor.utils.kubernetes.config.load_incluster_config")
    def test_no_configuration(self, mock_incluster, mock_kubeconfig):
        mock_incluster.side_effect = config.ConfigException("not in cluster")
        mock_kubeconfig.side_effect = config.ConfigException("no kubeconfig")

        with pytest.raises(ConfigurationError, match="Failed to load"):
            get_kubernetes_client()

    @patch("crd_extractor.utils.kubernetes.config.load_incluster_config")
    def test_pool_size(self, mock_incluster):
        api_client = get_kubernetes_client(pool_size=32)

        assert api_client.configuration.connection_pool_maxsize >= 32
