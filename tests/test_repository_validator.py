"""Tests for repository reachability validation."""

from unittest.mock import MagicMock, patch

import requests

from depfetch.models import RepositoryDescriptor


def _response(status, reason="", content=b""):
    response = MagicMock()
    response.status_code = status
    response.reason = reason
    response.content = content
    return response


REMOTE = RepositoryDescriptor.create("private", "default", "https://repo.example.com/maven2/", "user", "secret")


class TestRepositoryValidator:
    """validate_repository returns "" for a reachable repository, else a diagnostic."""

    def test_reachable_directory_repository(self, fake_repo, make_system):
        system = make_system()
        assert system.validate_repository(fake_repo.descriptor) == ""

    @patch("depfetch.common.http_client.requests.get")
    def test_not_found_means_reachable(self, mock_get, make_system):
        mock_get.return_value = _response(404, "Not Found")
        assert make_system().validate_repository(REMOTE) == ""
        args, kwargs = mock_get.call_args
        assert args[0] == "https://repo.example.com/maven2/test/test/1.0/test-1.0.jar"
        assert kwargs["auth"] == ("user", "secret")

    @patch("depfetch.common.http_client.requests.get")
    def test_rejected_credentials(self, mock_get, make_system):
        mock_get.return_value = _response(401, "Unauthorized")
        message = make_system().validate_repository(REMOTE)
        assert message
        assert "401" in message
        assert "secret" not in message

    @patch("depfetch.common.http_client.time.sleep")
    @patch("depfetch.common.http_client.requests.get")
    def test_timeout(self, mock_get, mock_sleep, make_system):
        mock_get.side_effect = requests.Timeout("read timed out")
        message = make_system().validate_repository(REMOTE)
        assert "timed out" in message
        assert mock_get.call_count == 3
        assert mock_sleep.call_count == 2

    @patch("depfetch.common.http_client.time.sleep")
    @patch("depfetch.common.http_client.requests.get")
    def test_unreachable_host(self, mock_get, _mock_sleep, make_system):
        mock_get.side_effect = requests.ConnectionError("name resolution failed")
        assert make_system().validate_repository(REMOTE) == "name resolution failed"

    @patch("depfetch.common.http_client.requests.get")
    def test_probe_ignores_local_cache(self, mock_get, make_system):
        """A cached probe artifact must not mask an unreachable repository."""
        system = make_system()
        system.cache.store_artifact(system.validator.probe, b"x")
        mock_get.return_value = _response(403, "Forbidden")
        assert system.validate_repository(REMOTE)
