"""
Tests for registry credential parsing.
"""

import pytest

from shipwright.core.exceptions import InvalidAuthError
from shipwright.deployment.credentials import parse_docker_auth, registry_host, resolve_auth


class TestParseDockerAuth:

    def test_user_password_defaults_to_docker_hub(self):
        credentials = parse_docker_auth(["alice:s3cret"])

        auth = credentials["docker.io"]
        assert (auth.username, auth.password, auth.serveraddress) == ("alice", "s3cret", "docker.io")

    def test_registry_with_port(self):
        credentials = parse_docker_auth(["my.registry.local:5000:bob:pw"])

        auth = credentials["my.registry.local:5000"]
        assert auth.username == "bob"
        assert auth.password == "pw"
        assert auth.serveraddress == "my.registry.local:5000"

    def test_multiple_entries(self):
        credentials = parse_docker_auth(["alice:one", "ghcr.io:bob:two"])

        assert set(credentials) == {"docker.io", "ghcr.io"}

    def test_empty(self):
        assert parse_docker_auth([]) == {}
        assert parse_docker_auth(None) == {}

    @pytest.mark.parametrize("entry", ["alice", "", ":pw", "alice:", "registry::pw"])
    def test_malformed(self, entry):
        with pytest.raises(InvalidAuthError):
            parse_docker_auth([entry])


class TestResolveAuth:

    def test_host_extracted_from_registry_path(self):
        assert registry_host("my.registry.local:5000/team/apps") == "my.registry.local:5000"
        assert registry_host("docker.io") == "docker.io"

    def test_matching_host(self):
        credentials = parse_docker_auth(["ghcr.io:bob:pw"])

        assert resolve_auth(credentials, "ghcr.io/acme").username == "bob"

    def test_missing_host(self):
        credentials = parse_docker_auth(["alice:pw"])

        with pytest.raises(InvalidAuthError, match="ghcr.io"):
            resolve_auth(credentials, "ghcr.io/acme")

    def test_colon_in_password_fails_lookup(self):
        credentials = parse_docker_auth(["alice:pa:ss"])

        assert "docker.io" not in credentials
        with pytest.raises(InvalidAuthError, match="docker.io"):
            resolve_auth(credentials, "docker.io")
