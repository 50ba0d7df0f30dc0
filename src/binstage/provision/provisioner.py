"""Native addon provisioner.

Makes the installed binary present exactly once, or reports why it could
not be. One run walks these states::

    disabled marker present   -> SKIPPED
    installed binary present  -> SKIPPED (unless forced)
    acquire  local bundle, else remote fetch with retry
    install  gunzip into a temp file, then atomic rename
    cleanup  remove the bundled staging directory (non-fatal)

Any :class:`ProvisionError` raised along the way becomes a FAILED result
tagged with its :class:`FailureKind`.
"""

from __future__ import annotations

import gzip
import io
import os
import shutil
import tempfile
import zlib
from pathlib import Path
from typing import BinaryIO, Optional, Tuple

from binstage.bootstrap.download import Fetcher, fetch_with_retry
from binstage.bootstrap.locator import ArtifactLocator, VariantKey, resolve_variant_key
from binstage.bootstrap.platform import PlatformInfo
from binstage.config.models import ProvisionConfig
from binstage.core.errors import (
    ArtifactNotFoundError,
    DecodeError,
    ProvisionError,
    WriteError,
)
from binstage.core.logging import get_logger
from binstage.core.time_provider import Clock, RealClock
from binstage.provision.result import (
    ArtifactSource,
    ProvisionResult,
    ProvisionStatus,
    SkipReason,
)

LOGGER = get_logger(__name__)

CHUNK_SIZE = 64 * 1024


def decompress_into(data: bytes, out: BinaryIO) -> int:
    """Gunzip ``data`` into ``out`` chunk by chunk.

    Args:
        data: gzip-compressed artifact bytes.
        out: Writable binary stream.

    Returns:
        Number of decompressed bytes written.

    Raises:
        DecodeError: If the stream is empty, corrupt or truncated.
        OSError: If writing to ``out`` fails.
    """
    if not data:
        raise DecodeError("Artifact is empty")

    written = 0
    with gzip.GzipFile(fileobj=io.BytesIO(data), mode="rb") as archive:
        while True:
            try:
                chunk = archive.read(CHUNK_SIZE)
            except (OSError, EOFError, zlib.error) as e:
                raise DecodeError(f"Corrupt or truncated artifact: {e}") from e
            if not chunk:
                break
            out.write(chunk)
            written += len(chunk)
    return written


class Provisioner:
    """Installs the native binary for one host package."""

    def __init__(
        self,
        config: ProvisionConfig,
        locator: Optional[ArtifactLocator] = None,
        fetcher: Optional[Fetcher] = None,
        clock: Optional[Clock] = None,
        platform_info: Optional[PlatformInfo] = None,
    ) -> None:
        """Initialize Provisioner.

        Args:
            config: Provisioning configuration.
            locator: Path layout; derived from config when omitted.
            fetcher: Single-attempt fetch function (defaults to HTTPS GET).
            clock: Time source for retry backoff.
            platform_info: Host platform override; detected when omitted.
        """
        self._config = config
        self._locator = locator or config.locator()
        self._fetcher = fetcher
        self._clock = clock or RealClock()
        self._platform_info = platform_info

    @property
    def locator(self) -> ArtifactLocator:
        return self._locator

    def provision(self, force: bool = False) -> ProvisionResult:
        """Run the provisioning state machine.

        Args:
            force: Remove an existing installed binary and reinstall.

        Returns:
            Tagged ProvisionResult; never raises ProvisionError.
        """
        installed = self._locator.installed_path

        if self._locator.disable_marker_path.exists():
            LOGGER.info(f"Found {self._locator.disable_marker_path}, skipping install")
            return self._result(ProvisionStatus.SKIPPED, skip_reason=SkipReason.DISABLED)

        if installed.exists():
            if not force:
                LOGGER.debug(f"Native binary already present at {installed}")
                return self._result(
                    ProvisionStatus.SKIPPED, skip_reason=SkipReason.ALREADY_INSTALLED
                )
            LOGGER.info(f"Removing existing binary {installed} for reinstall")
            try:
                installed.unlink()
            except OSError as e:
                return self._failure(WriteError(f"Failed to remove {installed}: {e}"))

        variant: Optional[VariantKey] = None
        source: Optional[ArtifactSource] = None
        attempts = 0
        try:
            variant = resolve_variant_key(self._platform_info)
            LOGGER.debug(f"Resolved variant {variant}")
            data, source, attempts = self._acquire(variant)
            size = self._install(data)
        except ProvisionError as e:
            return self._failure(e, variant=variant, source=source)

        LOGGER.info(f"Installed {size} bytes to {installed}")

        cleanup_error = None
        if source == ArtifactSource.LOCAL:
            cleanup_error = self._cleanup()

        return self._result(
            ProvisionStatus.SUCCEEDED,
            variant=variant,
            source=source,
            attempts=attempts,
            cleanup_error=cleanup_error,
        )

    def _acquire(self, variant: VariantKey) -> Tuple[bytes, ArtifactSource, int]:
        """Obtain compressed artifact bytes, preferring the local bundle."""
        staging_path = self._locator.staging_path(variant)
        url = self._config.remote_url(self._locator, variant)

        try:
            data = staging_path.read_bytes()
        except FileNotFoundError:
            LOGGER.debug(f"No bundled artifact at {staging_path}")
        except OSError as e:
            if url is None:
                raise ArtifactNotFoundError(
                    f"Could not read bundled artifact for {variant}: {e}"
                ) from e
            LOGGER.warning(f"Could not read bundled artifact {staging_path}: {e}")
        else:
            LOGGER.info(f"Using bundled artifact {staging_path}")
            return data, ArtifactSource.LOCAL, 0

        if url is None:
            raise ArtifactNotFoundError(
                f"No prebuilt binary for {variant} (expected {staging_path}) "
                "and no remote origin configured"
            )

        LOGGER.info(f"Downloading {variant} from {url}")
        fetched = fetch_with_retry(
            url,
            max_attempts=self._config.max_attempts,
            timeout=self._config.timeout,
            base_delay=self._config.base_delay,
            backoff_factor=self._config.backoff_factor,
            clock=self._clock,
            fetch=self._fetcher,
        )
        return fetched.data, ArtifactSource.REMOTE, fetched.attempts

    def _install(self, data: bytes) -> int:
        """Decompress into a temp file beside the target, then rename it in.

        The installed path is either absent or complete at every point.
        """
        installed = self._locator.installed_path
        try:
            installed.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{installed.name}.", suffix=".tmp", dir=installed.parent
            )
        except OSError as e:
            raise WriteError(f"Failed to create {installed}: {e}") from e

        tmp_path = Path(tmp_name)
        try:
            with os.fdopen(fd, "wb") as out:
                size = decompress_into(data, out)
                out.flush()
                os.fsync(out.fileno())
            if os.name != "nt":
                tmp_path.chmod(0o755)
            os.replace(tmp_path, installed)
        except OSError as e:
            self._discard(tmp_path)
            raise WriteError(f"Failed to write {installed}: {e}") from e
        except BaseException:
            self._discard(tmp_path)
            raise
        return size

    def _discard(self, tmp_path: Path) -> None:
        try:
            tmp_path.unlink(missing_ok=True)
        except OSError as e:
            LOGGER.warning(f"Failed to remove temporary file {tmp_path}: {e}")

    def _cleanup(self) -> Optional[str]:
        """Remove the bundled staging directory; failures are only logged."""
        staging_dir = self._locator.staging_dir
        try:
            shutil.rmtree(staging_dir)
        except FileNotFoundError:
            return None
        except OSError as e:
            LOGGER.warning(f"Failed to remove staging directory {staging_dir}: {e}")
            return str(e)
        LOGGER.debug(f"Removed staging directory {staging_dir}")
        return None

    def _failure(
        self,
        error: ProvisionError,
        variant: Optional[VariantKey] = None,
        source: Optional[ArtifactSource] = None,
    ) -> ProvisionResult:
        message = str(error)
        if error.attempts > 1:
            message = f"{message} (after {error.attempts} attempts)"
        LOGGER.debug(f"Provisioning failed [{error.kind.value}]: {message}")
        return self._result(
            ProvisionStatus.FAILED,
            variant=variant,
            source=source,
            failure=error.kind,
            message=message,
            attempts=error.attempts,
        )

    def _result(
        self,
        status: ProvisionStatus,
        variant: Optional[VariantKey] = None,
        **kwargs,
    ) -> ProvisionResult:
        return ProvisionResult(
            status=status,
            package_name=self._config.display_name,
            installed_path=self._locator.installed_path,
            variant=variant.key if variant else None,
            **kwargs,
        )
