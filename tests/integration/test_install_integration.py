"""End-to-end install runs through the CLI against a real package root.

The network is replaced at the urlopen boundary so the real fetch,
retry, decompress and rename code paths all run.
"""

from __future__ import annotations

import gzip
import json
from pathlib import Path
from typing import List
from unittest.mock import MagicMock, patch
from urllib.error import HTTPError, URLError

import pytest

from binstage.bootstrap.platform import PlatformInfo
from binstage.cli import main
from binstage.cli.exit_codes import EXIT_PROVISION_FAILED, EXIT_SUCCESS

pytestmark = pytest.mark.integration

BASE_URL = "https://downloads.example.com/v{version}"


class FakeOrigin:
    """Replays responses for successive urlopen calls."""

    def __init__(self, *outcomes) -> None:
        self.outcomes = list(outcomes)
        self.requests: List[str] = []

    def __call__(self, request, timeout=None, context=None):
        self.requests.append(request.full_url)
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        response = MagicMock()
        response.status = 200
        response.read.side_effect = [outcome, b""]
        response.__enter__.return_value = response
        response.__exit__.return_value = False
        return response


@pytest.fixture
def host_package(package_root: Path) -> Path:
    (package_root / "package.json").write_text(
        json.dumps({"name": "@min-html/core", "version": "0.8.5", "main": "index.js"})
    )
    (package_root / ".binstage.yml").write_text(
        f"remote_base_url: {BASE_URL}\nbase_delay: 0\n"
    )
    return package_root


@pytest.fixture(autouse=True)
def _linux_host():
    with patch(
        "binstage.bootstrap.locator.get_platform_info",
        return_value=PlatformInfo(os="linux", arch="arm64"),
    ):
        yield


def test_remote_install_survives_transient_failures(host_package: Path, capsys) -> None:
    origin = FakeOrigin(
        URLError("connection reset"),
        HTTPError("u", 502, "Bad Gateway", {}, None),
        gzip.compress(b"\x7fELF native addon"),
    )
    with patch("binstage.bootstrap.download.urlopen", side_effect=origin):
        code = main(["install", str(host_package)])

    assert code == EXIT_SUCCESS
    assert capsys.readouterr().out.strip() == "Installed @min-html/core"
    assert (host_package / "index.node").read_bytes() == b"\x7fELF native addon"
    assert origin.requests == [
        "https://downloads.example.com/v0.8.5/linux__arm64.node.gz"
    ] * 3


def test_remote_install_gives_up(host_package: Path, capsys) -> None:
    origin = FakeOrigin(*[HTTPError("u", 404, "Not Found", {}, None) for _ in range(4)])
    with patch("binstage.bootstrap.download.urlopen", side_effect=origin):
        code = main(["install", str(host_package)])

    err = capsys.readouterr().err
    assert code == EXIT_PROVISION_FAILED
    assert "Failed to install @min-html/core: Bad status of 404" in err
    assert len(origin.requests) == 4
    assert not (host_package / "index.node").exists()


def test_reinstall_and_idempotence(host_package: Path, bundle_artifact) -> None:
    bundle_artifact(b"first build", variant="linux__arm64")
    origin = FakeOrigin()

    with patch("binstage.bootstrap.download.urlopen", side_effect=origin):
        assert main(["install", str(host_package)]) == EXIT_SUCCESS
        assert main(["install", str(host_package)]) == EXIT_SUCCESS

    assert origin.requests == []
    assert (host_package / "index.node").read_bytes() == b"first build"

    origin = FakeOrigin(gzip.compress(b"second build"))
    with patch("binstage.bootstrap.download.urlopen", side_effect=origin):
        assert main(["install", str(host_package), "--force"]) == EXIT_SUCCESS

    assert (host_package / "index.node").read_bytes() == b"second build"


def test_disabled_package_is_untouched(host_package: Path, capsys) -> None:
    (host_package / ".no-postinstall").touch()
    with patch("binstage.bootstrap.download.urlopen") as mock_urlopen:
        code = main(["install", str(host_package)])

    assert code == EXIT_SUCCESS
    assert "Skipped @min-html/core (disabled)" in capsys.readouterr().out
    mock_urlopen.assert_not_called()
    assert not (host_package / "index.node").exists()
