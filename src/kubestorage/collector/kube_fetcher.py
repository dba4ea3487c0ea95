"""
Fetcher that goes through the API server's node proxy, the way the
exporter runs in a cluster:

    GET /api/v1/nodes/<node>/proxy/stats/summary

Credentials come from the pod's service account when in-cluster, or
from a kubeconfig otherwise.
"""

from __future__ import annotations

import logging
from typing import Optional

from kubernetes import client, config
from kubernetes.config.config_exception import ConfigException

from kubestorage.collector.base import StatsFetcher
from kubestorage.errors import ConfigError, FetchError

log = logging.getLogger(__name__)


def init_kubernetes_client(in_cluster: bool, kubeconfig: Optional[str] = None) -> client.CoreV1Api:
    """Load credentials and build a CoreV1Api. Raises ConfigError on bad credentials."""
    try:
        if in_cluster:
            config.load_incluster_config()
            log.debug("Using in-cluster Kubernetes configuration")
        else:
            config.load_kube_config(config_file=kubeconfig)
            log.debug("Using kubeconfig file for Kubernetes configuration")
    except (ConfigException, OSError) as e:
        mode = "in-cluster" if in_cluster else "kubeconfig"
        raise ConfigError(f"Failed to load {mode} Kubernetes configuration: {e}") from e

    return client.CoreV1Api()


class KubeProxyFetcher(StatsFetcher):

    def __init__(self, api: client.CoreV1Api, node_name: str):
        if not node_name:
            raise ConfigError("KubeProxyFetcher needs a node name")
        self._api = api
        self._node_name = node_name

    @classmethod
    def from_settings(cls, in_cluster: bool, node_name: str, kubeconfig: Optional[str] = None):
        return cls(init_kubernetes_client(in_cluster, kubeconfig), node_name)

    def fetch(self) -> bytes:
        try:
            # _preload_content=False hands back the raw urllib3 response,
            # so the body is never run through the client's model decoder
            response = self._api.connect_get_node_proxy_with_path(
                self._node_name, "stats/summary", _preload_content=False
            )
            content = response.data
        except Exception as e:
            raise FetchError(f"Proxy stats request for node {self._node_name} failed: {e}") from e

        log.debug("Fetched proxy stats from node : %s", self._node_name)
        return content

    def name(self) -> str:
        return f"API server proxy (node {self._node_name})"

    def close(self):
        self._api.api_client.close()
