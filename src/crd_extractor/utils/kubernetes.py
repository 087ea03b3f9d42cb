"""
Kubernetes utilities for the CRD extractor.

This module provides the read-only cluster queries the pipeline needs:

- Kubernetes client management and configuration
- Listing CustomResourceDefinition names
- Fetching one CRD document by name
- Fetching the aggregate OpenAPI v2 document

All calls are synchronous and are run in worker threads by the fetcher.
Failures are translated into the extractor error hierarchy.
"""

import json
import logging
from pathlib import Path

import yaml
from kubernetes import client, config
from kubernetes.client.rest import ApiException
from urllib3.exceptions import HTTPError as TransportError

from crd_extractor.constants import OPENAPI_V2_PATH
from crd_extractor.errors import (
    ClusterAuthError,
    ClusterUnreachableError,
    ConfigurationError,
    ExtractorError,
    KubernetesAPIError,
    ResourceNotFoundError,
)

logger = logging.getLogger(__name__)


def get_kubernetes_client(
    kubeconfig: Path | None = None,
    context: str | None = None,
    pool_size: int | None = None,
) -> client.ApiClient:
    """
    Get configured Kubernetes API client.

    This function handles both in-cluster and local kubeconfig configurations.
    An explicit kubeconfig or context always selects the kubeconfig loader.

    Args:
        kubeconfig: Kubeconfig file, defaults to $KUBECONFIG or ~/.kube/config
        context: Kubeconfig context, defaults to the current context
        pool_size: Connection pool size, should match the fetch concurrency

    Returns:
        Configured Kubernetes API client

    Raises:
        ConfigurationError: If no usable cluster configuration was found
    """
    try:
        if kubeconfig is None and context is None:
            try:
                # Try in-cluster config first (when running in a pod)
                config.load_incluster_config()
                logger.debug("Loaded in-cluster Kubernetes configuration")
            except config.ConfigException:
                config.load_kube_config()
                logger.debug("Loaded kubeconfig from local environment")
        else:
            config.load_kube_config(
                config_file=str(kubeconfig) if kubeconfig else None,
                context=context,
            )
            logger.debug(f"Loaded kubeconfig {kubeconfig or ''} context {context or ''}")
    except (config.ConfigException, OSError) as e:
        logger.error(f"Failed to load Kubernetes configuration: {e}")
        raise ConfigurationError(
            f"Failed to load Kubernetes configuration: {e}",
            user_action="Point --kubeconfig at a valid kubeconfig or select a --context",
        ) from e

    configuration = client.Configuration.get_default_copy()
    if pool_size:
        # Avoid urllib3 "connection pool is full" churn under parallel fetches
        configuration.connection_pool_maxsize = max(
            pool_size, configuration.connection_pool_maxsize or 0
        )
    return client.ApiClient(configuration)


def translate_api_exception(e: ApiException, operation: str) -> ExtractorError:
    """
    Map an ApiException onto the extractor error hierarchy.

    Args:
        e: Exception raised by the Kubernetes client
        operation: Short description of what was attempted

    Returns:
        The matching extractor error (not raised)
    """
    if e.status in (401, 403):
        return ClusterAuthError(f"{operation} was rejected", status=e.status)
    if e.status == 0 or e.status is None:
        # The client reports transport-level failures with status 0
        return ClusterUnreachableError(f"{operation} failed: {e.reason}", cause=e)
    return KubernetesAPIError(
        f"{operation} failed", reason=e.reason, status=e.status
    )


def list_crd_names(api_client: client.ApiClient) -> list[str]:
    """
    List the names of all CustomResourceDefinitions in the cluster.

    The raw response is parsed instead of the generated models, which reject
    some valid CRDs served by older API servers.

    Args:
        api_client: Configured Kubernetes API client

    Returns:
        CRD names, sorted

    Raises:
        ClusterUnreachableError: If the API server could not be reached
        ClusterAuthError: If listing CRDs is not permitted
        KubernetesAPIError: For any other API failure
    """
    api = client.ApiextensionsV1Api(api_client)
    try:
        response = api.list_custom_resource_definition(_preload_content=False)
    except ApiException as e:
        raise translate_api_exception(e, "Listing CRDs") from e
    except TransportError as e:
        raise ClusterUnreachableError(f"Listing CRDs failed: {e}", cause=e) from e

    payload = json.loads(response.data)
    names = sorted(
        item["metadata"]["name"]
        for item in payload.get("items") or []
        if item.get("metadata", {}).get("name")
    )
    logger.debug(f"Listed {len(names)} CRDs", extra={"total": len(names)})
    return names


def read_crd_document(api_client: client.ApiClient, name: str) -> bytes:
    """
    Fetch the full definition of one CRD as a YAML document.

    Args:
        api_client: Configured Kubernetes API client
        name: CRD name (e.g. "certificates.cert-manager.io")

    Returns:
        The CRD serialized as YAML, ready to be staged for the converter

    Raises:
        ResourceNotFoundError: If the CRD no longer exists
        ClusterUnreachableError: If the API server could not be reached
        ClusterAuthError: If reading the CRD is not permitted
        KubernetesAPIError: For any other API failure
    """
    api = client.ApiextensionsV1Api(api_client)
    try:
        response = api.read_custom_resource_definition(name, _preload_content=False)
    except ApiException as e:
        if e.status == 404:
            raise ResourceNotFoundError(name) from e
        raise translate_api_exception(e, f"Reading CRD {name}") from e
    except TransportError as e:
        raise ClusterUnreachableError(f"Reading CRD {name} failed: {e}", cause=e) from e

    document = json.loads(response.data)
    return yaml.safe_dump(document, sort_keys=False).encode("utf-8")


def fetch_openapi_v2(api_client: client.ApiClient) -> bytes:
    """
    Fetch the cluster's aggregate OpenAPI v2 document.

    The converter needs it to resolve definition references inside the
    individual CRD schemas.

    Args:
        api_client: Configured Kubernetes API client

    Returns:
        Raw response body (JSON, which the converter reads as YAML)

    Raises:
        ClusterUnreachableError: If the API server could not be reached
        ClusterAuthError: If the document is not readable
        KubernetesAPIError: For any other API failure
    """
    try:
        response = api_client.call_api(
            OPENAPI_V2_PATH,
            "GET",
            auth_settings=["BearerToken"],
            response_type="object",
            _return_http_data_only=True,
            _preload_content=False,
        )
    except ApiException as e:
        raise translate_api_exception(e, "Fetching OpenAPI v2 schema") from e
    except TransportError as e:
        raise ClusterUnreachableError(
            f"Fetching OpenAPI v2 schema failed: {e}", cause=e
        ) from e

    logger.debug(f"Fetched OpenAPI v2 schema ({len(response.data)} bytes)")
    return response.data
