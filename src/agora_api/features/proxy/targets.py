"""Backend address resolution for proxied deployments.

Addresses are derived from ids alone; nothing here talks to the cluster.
"""

from __future__ import annotations

from dataclasses import dataclass

from agora_api.settings import Settings

_DEFAULT_PORTS = {"http": 80, "https": 443}
_WEBSOCKET_SCHEMES = {"http": "ws", "https": "wss"}


@dataclass(frozen=True, slots=True)
class NetworkAddress:
    scheme: str
    host: str
    port: int

    @property
    def netloc(self) -> str:
        """``host[:port]`` with the scheme's default port left out, as sent in ``Host``."""

        if _DEFAULT_PORTS.get(self.scheme) == self.port:
            return self.host
        return f"{self.host}:{self.port}"

    @property
    def base_url(self) -> str:
        return f"{self.scheme}://{self.host}:{self.port}"

    def url(self, path: str, query: str = "") -> str:
        return _join(self.base_url, path, query)

    def websocket_url(self, path: str, query: str = "") -> str:
        scheme = _WEBSOCKET_SCHEMES.get(self.scheme, "ws")
        return _join(f"{scheme}://{self.host}:{self.port}", path, query)


def _join(base: str, path: str, query: str) -> str:
    if not path.startswith("/"):
        path = f"/{path}"
    return f"{base}{path}?{query}" if query else f"{base}{path}"


def resource_name(prefix: str, identifier: str) -> str:
    """Cluster resource name for an id; DNS labels are lower-case."""

    return f"{prefix}-{identifier}".lower()


def resolve_target(workspace_id: str, deployment_id: str, settings: Settings) -> NetworkAddress:
    """Return the in-cluster service address of a deployment.

    The deployment's service lives in its workspace's namespace, so the host
    is ``{deployment}.{workspace}.{domain}``.
    """

    prefix = settings.proxy_resource_prefix
    host = ".".join(
        (
            resource_name(prefix, deployment_id),
            resource_name(prefix, workspace_id),
            settings.proxy_service_domain,
        )
    )
    return NetworkAddress(
        scheme=settings.proxy_target_scheme,
        host=host,
        port=settings.proxy_target_port,
    )


def strip_proxy_prefix(path: str, deployment_id: str, prefix: str = "/proxy") -> str:
    """Remove the leading ``{prefix}/{deployment_id}`` segment pair from ``path``.

    Only a whole leading match is removed, once. An empty remainder becomes
    ``/``; a path without the prefix is returned unchanged.
    """

    head = f"{prefix.rstrip('/')}/{deployment_id}"
    if path == head:
        return "/"
    if path.startswith(f"{head}/"):
        return path[len(head):]
    return path


__all__ = ["NetworkAddress", "resolve_target", "resource_name", "strip_proxy_prefix"]
