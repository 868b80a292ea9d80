"""
Registry credential parsing.

Entries look like `username:password` (Docker Hub) or
`registry:username:password`, where the registry may carry a port
(`my.registry.local:5000:username:password`).

Entries are split from the right, so neither the username nor the password
may contain `:`. Such an entry is read with a different registry host and
fails credential lookup for the intended registry.
"""
from typing import Dict, Iterable

from ..core.exceptions import InvalidAuthError
from ..core.models import RegistryAuth


DEFAULT_REGISTRY_HOST = "docker.io"


def parse_docker_auth(entries: Iterable[str]) -> Dict[str, RegistryAuth]:
    """
    Parse credential entries into a host -> RegistryAuth map.
    Later entries for the same host win.

    Raises:
        InvalidAuthError: If an entry is malformed
    """
    credentials: Dict[str, RegistryAuth] = {}

    for entry in entries or ():
        parts = (entry or "").strip().split(':')

        if len(parts) == 2:
            host = DEFAULT_REGISTRY_HOST
            username, password = parts
        elif len(parts) > 2:
            host = ':'.join(parts[:-2])
            username, password = parts[-2:]
        else:
            raise InvalidAuthError("Malformed docker auth entry (expected [registry:]username:password)")

        if not host or not username or not password:
            raise InvalidAuthError(f"Malformed docker auth entry for {host or 'unknown registry'}")

        credentials[host] = RegistryAuth(username=username, password=password, serveraddress=host)

    return credentials


def registry_host(registry: str) -> str:
    """Host part of a registry string such as 'my.registry.local:5000/team'"""
    return registry.strip('/').split('/', 1)[0]


def resolve_auth(credentials: Dict[str, RegistryAuth], registry: str) -> RegistryAuth:
    """
    Credentials for the registry's host.

    Raises:
        InvalidAuthError: If no entry matches the host
    """
    host = registry_host(registry)
    auth = credentials.get(host)
    if auth is None:
        raise InvalidAuthError(f"Invalid registry auth for {host}")
    return auth
