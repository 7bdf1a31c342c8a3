"""Collection of cluster information from the Kubernetes API server."""

from __future__ import annotations

import base64
import json
import logging
import os
import tempfile
from dataclasses import dataclass, field
from typing import IO, Any, Optional

import requests
import yaml

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _GroupVersionResource:
    group: str
    version: str
    resource: str

    def __str__(self) -> str:
        return f"{self.group}/{self.version}, Resource={self.resource}"

    def path(self, namespace: Optional[str] = None) -> str:
        """The API path listing this resource, optionally in a namespace."""
        if self.group:
            base = f"/apis/{self.group}/{self.version}"
        else:
            base = f"/api/{self.version}"
        if namespace:
            base += f"/namespaces/{namespace}"
        return f"{base}/{self.resource}"


NAMESPACES_RESOURCE = _GroupVersionResource("", "v1", "namespaces")
NODES_RESOURCE = _GroupVersionResource("", "v1", "nodes")
EVENTS_RESOURCE = _GroupVersionResource("", "v1", "events")
RCS_RESOURCE = _GroupVersionResource("", "v1", "replicationcontrollers")
SERVICES_RESOURCE = _GroupVersionResource("", "v1", "services")
DAEMONSETS_RESOURCE = _GroupVersionResource("apps", "v1", "daemonsets")
DEPLOYMENTS_RESOURCE = _GroupVersionResource("apps", "v1", "deployments")
REPLICASETS_RESOURCE = _GroupVersionResource("apps", "v1", "replicasets")
PODS_RESOURCE = _GroupVersionResource("", "v1", "pods")

# resources collected in every namespace, in collection order
NAMESPACED_RESOURCES = (
    EVENTS_RESOURCE,
    RCS_RESOURCE,
    SERVICES_RESOURCE,
    DAEMONSETS_RESOURCE,
    DEPLOYMENTS_RESOURCE,
    REPLICASETS_RESOURCE,
    PODS_RESOURCE,
)

_LIST_ERRORS = (requests.RequestException, ValueError)


@dataclass
class KubeClient:
    """Lists resources from a Kubernetes API server."""

    server: str
    session: requests.Session = field(default_factory=requests.Session)
    timeout: float = 30.0

    def list(self, resource: _GroupVersionResource, namespace: Optional[str] = None) -> dict:
        """Return the list object for ``resource``, cluster wide or in ``namespace``."""
        url = self.server.rstrip("/") + resource.path(namespace)
        response = self.session.get(url, timeout=self.timeout)
        response.raise_for_status()
        return response.json()


def _named(config: dict, section: str, name: Any, key: str) -> dict:
    for entry in config.get(section) or []:
        if entry.get("name") == name:
            return entry.get(key) or {}
    raise ValueError(f"invalid configuration: {key} {name!r} not found")


def _material(entry: dict, key: str, base_dir: str) -> Optional[str]:
    """Return a file path for ``key``, writing inline ``key-data`` to a file."""
    path = entry.get(key)
    if path:
        return path if os.path.isabs(path) else os.path.join(base_dir, path)
    data = entry.get(f"{key}-data")
    if data:
        with tempfile.NamedTemporaryFile(prefix="crashd-", delete=False) as file:
            file.write(base64.b64decode(data))
            return file.name
    return None


def get_client(kubeconfig: str) -> KubeClient:
    """Build a client from the current context of a kube config file."""
    with open(kubeconfig, encoding="utf-8") as file:
        config = yaml.safe_load(file) or {}
    base_dir = os.path.dirname(os.path.abspath(kubeconfig))

    context_name = config.get("current-context")
    if not context_name:
        raise ValueError("invalid configuration: no current context is set")
    context = _named(config, "contexts", context_name, "context")
    cluster = _named(config, "clusters", context.get("cluster"), "cluster")
    user = _named(config, "users", context.get("user"), "user") if context.get("user") else {}

    server = cluster.get("server")
    if not server:
        raise ValueError(f"invalid configuration: no server found for context {context_name!r}")

    session = requests.Session()
    if cluster.get("insecure-skip-tls-verify"):
        session.verify = False
    else:
        ca_file = _material(cluster, "certificate-authority", base_dir)
        if ca_file:
            session.verify = ca_file

    cert_file = _material(user, "client-certificate", base_dir)
    key_file = _material(user, "client-key", base_dir)
    if cert_file and key_file:
        session.cert = (cert_file, key_file)

    bearer = user.get("token")
    bearer_file = user.get("tokenFile")
    if not bearer and bearer_file:
        if not os.path.isabs(bearer_file):
            bearer_file = os.path.join(base_dir, bearer_file)
        with open(bearer_file, encoding="utf-8") as file:
            bearer = file.read().strip()
    if bearer:
        session.headers["Authorization"] = f"Bearer {bearer}"
    elif user.get("username"):
        session.auth = (user["username"], user.get("password", ""))

    return KubeClient(server=server, session=session)


def _get_namespaces(client: KubeClient) -> list[str]:
    listing = client.list(NAMESPACES_RESOURCE)
    return [
        (item.get("metadata") or {}).get("name", "")
        for item in listing.get("items") or []
    ]


def _dump_error(writer: IO[str], resource: str, err: BaseException) -> None:
    message = f"Error during cluster-info collection for {resource}: {err}\n"
    logger.error(message.rstrip("\n"))
    writer.write(message)


def _object_name(obj: dict) -> str:
    return (obj.get("metadata") or {}).get("name", "")


def _print_to_file(file: IO[str], objs: list[dict]) -> None:
    for obj in objs:
        if obj is None:
            continue
        if not obj.get("kind") or not obj.get("apiVersion"):
            _dump_error(file, _object_name(obj), ValueError("missing apiVersion or kind"))
            continue
        try:
            data = json.dumps(obj, indent=4, sort_keys=True, ensure_ascii=False)
        except (TypeError, ValueError) as err:
            _dump_error(file, _object_name(obj), err)
            continue
        file.write(data + "\n")


def dump_cluster_info(client: KubeClient, path: str) -> None:
    """Write nodes and namespaced workloads of the cluster as JSON to ``path``.

    Failing to list namespaces raises; any other failed listing is written
    to the file as an error line and collection goes on.
    """
    namespaces = _get_namespaces(client)

    with open(path, "w", encoding="utf-8") as file:
        logger.debug("Dumping cluster info in %s", path)
        objs: list[dict] = []

        try:
            objs.append(client.list(NODES_RESOURCE))
        except _LIST_ERRORS as err:
            _dump_error(file, str(NODES_RESOURCE), err)

        for namespace in namespaces:
            for resource in NAMESPACED_RESOURCES:
                try:
                    objs.append(client.list(resource, namespace))
                except _LIST_ERRORS as err:
                    _dump_error(file, str(resource), err)

        _print_to_file(file, objs)