"""Shared fixtures for binstage tests."""

from __future__ import annotations

import gzip
import logging
from pathlib import Path
from typing import Callable, List

import pytest

from binstage.bootstrap.platform import PlatformInfo
from binstage.config.models import ProvisionConfig
from binstage.core.time_provider import Clock

PAYLOAD = b"\x7fELF" + bytes(range(256)) * 64


class FakeClock(Clock):
    """Records sleeps instead of waiting."""

    def __init__(self) -> None:
        self.sleeps: List[float] = []
        self.now = 0.0

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds

    def monotonic(self) -> float:
        return self.now


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def linux_amd64() -> PlatformInfo:
    return PlatformInfo(os="linux", arch="amd64")


@pytest.fixture
def payload() -> bytes:
    return PAYLOAD


@pytest.fixture
def package_root(tmp_path: Path) -> Path:
    root = tmp_path / "pkg"
    root.mkdir()
    return root


@pytest.fixture
def bundle_artifact(package_root: Path) -> Callable[..., Path]:
    """Write a gzip-compressed artifact into the staging directory."""

    def _bundle(
        data: bytes = PAYLOAD,
        variant: str = "linux__amd64",
        compress: bool = True,
    ) -> Path:
        staging_dir = package_root / "binaries"
        staging_dir.mkdir(exist_ok=True)
        path = staging_dir / f"{variant}.node.gz"
        path.write_bytes(gzip.compress(data) if compress else data)
        return path

    return _bundle


@pytest.fixture
def config(package_root: Path) -> ProvisionConfig:
    return ProvisionConfig(package_root=package_root, package_name="@min-html/core")


@pytest.fixture
def remote_config(package_root: Path) -> ProvisionConfig:
    return ProvisionConfig(
        package_root=package_root,
        package_name="@min-html/core",
        remote_base_url="https://downloads.example.com/v1",
    )


@pytest.fixture(autouse=True)
def _reset_binstage_logger():
    """Drop handlers the CLI installs so they never outlive a captured stream."""
    yield
    logger = logging.getLogger("binstage")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
    logger.propagate = True
