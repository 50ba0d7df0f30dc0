"""Remote artifact download.

One call to :func:`fetch_artifact` is a single fetch attempt;
:func:`fetch_with_retry` wraps it with a bounded retry loop and exponential
backoff between attempts.
"""

from __future__ import annotations

import http.client
import ssl
from dataclasses import dataclass
from functools import partial
from typing import Callable, List, Optional
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from binstage import __version__
from binstage.core.errors import (
    BadStatusError,
    InvalidURLError,
    ProvisionError,
    TransportError,
)
from binstage.core.logging import get_logger
from binstage.core.time_provider import Clock, RealClock

LOGGER = get_logger(__name__)

DEFAULT_MAX_ATTEMPTS = 4
DEFAULT_TIMEOUT = 30.0
DEFAULT_BASE_DELAY = 1.0
DEFAULT_BACKOFF_FACTOR = 2.0

READ_CHUNK_SIZE = 64 * 1024

USER_AGENT = f"binstage/{__version__}"

Fetcher = Callable[[str, float], bytes]


@dataclass
class FetchResult:
    """Bytes returned by a successful fetch and the attempts it took."""

    data: bytes
    attempts: int


def secure_urlopen(url: str, timeout: float = DEFAULT_TIMEOUT):
    """Open an HTTPS URL with certificate verification.

    Raises:
        ValueError: If the URL does not use the https scheme.
    """
    if not url.startswith("https://"):
        raise ValueError(f"Invalid download URL: {url}")
    context = ssl.create_default_context()
    request = Request(url, headers={"User-Agent": USER_AGENT})
    return urlopen(request, timeout=timeout, context=context)  # nosec B310


def fetch_artifact(
    url: str,
    timeout: float = DEFAULT_TIMEOUT,
    clock: Optional[Clock] = None,
) -> bytes:
    """Perform a single GET and return the full response body.

    ``timeout`` bounds the whole attempt, not only each socket operation:
    the body is read in chunks and the attempt is abandoned once the
    deadline passes.

    Args:
        url: Artifact URL.
        timeout: Per-attempt timeout in seconds.
        clock: Time source for the attempt deadline.

    Returns:
        Raw response bytes.

    Raises:
        BadStatusError: Response status outside 200-299.
        InvalidURLError: The URL cannot be requested (e.g. a non-numeric port).
        TransportError: Connection, DNS, timeout or truncated-body failures.
    """
    clock = clock or RealClock()
    deadline = clock.monotonic() + timeout
    try:
        with secure_urlopen(url, timeout=timeout) as response:
            status = getattr(response, "status", None)
            if status is None or status < 200 or status > 299:
                raise BadStatusError(status, url)
            chunks: List[bytes] = []
            while True:
                if clock.monotonic() > deadline:
                    raise TransportError(
                        f"Download of {url} timed out after {timeout:.1f}s"
                    )
                chunk = response.read(READ_CHUNK_SIZE)
                if not chunk:
                    break
                chunks.append(chunk)
            return b"".join(chunks)
    except HTTPError as e:
        raise BadStatusError(e.code, url) from e
    except URLError as e:
        raise TransportError(f"Failed to reach {url}: {e.reason}") from e
    except http.client.InvalidURL as e:
        raise InvalidURLError(f"Invalid download URL {url}: {e}") from e
    except http.client.HTTPException as e:
        raise TransportError(f"Incomplete response from {url}: {e!r}") from e
    except OSError as e:
        raise TransportError(f"Network error fetching {url}: {e}") from e


def backoff_delay(attempt: int, base_delay: float, backoff_factor: float) -> float:
    """Delay to wait before ``attempt`` (1-based); zero for the first attempt."""
    if attempt <= 1:
        return 0.0
    return base_delay * (backoff_factor ** (attempt - 2))


def fetch_with_retry(
    url: str,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    timeout: float = DEFAULT_TIMEOUT,
    base_delay: float = DEFAULT_BASE_DELAY,
    backoff_factor: float = DEFAULT_BACKOFF_FACTOR,
    clock: Optional[Clock] = None,
    fetch: Optional[Fetcher] = None,
) -> FetchResult:
    """Fetch ``url`` with up to ``max_attempts`` attempts.

    Delay before attempt ``n`` (n >= 2) is
    ``base_delay * backoff_factor ** (n - 2)``: 1s, 2s, 4s with defaults.

    Args:
        url: Artifact URL.
        max_attempts: Total attempts including the first.
        timeout: Per-attempt timeout in seconds.
        base_delay: Delay before the second attempt.
        backoff_factor: Multiplier applied to each subsequent delay.
        clock: Time source used for waiting and timing attempts.
        fetch: Single-attempt fetch function (defaults to fetch_artifact).

    Returns:
        FetchResult with the body and the number of attempts used.

    Raises:
        ProvisionError: The last retryable error once attempts are exhausted,
            or any non-retryable error immediately. ``attempts`` is set on it.
    """
    if max_attempts < 1:
        raise ValueError(f"max_attempts must be at least 1, got {max_attempts}")

    clock = clock or RealClock()
    if fetch is None:
        fetch = partial(fetch_artifact, clock=clock)

    for attempt in range(1, max_attempts + 1):
        delay = backoff_delay(attempt, base_delay, backoff_factor)
        if delay > 0:
            LOGGER.info(
                f"Retrying after {delay:.1f}s (attempt {attempt}/{max_attempts})..."
            )
            clock.sleep(delay)

        started = clock.monotonic()
        try:
            data = fetch(url, timeout)
        except ProvisionError as e:
            elapsed = clock.monotonic() - started
            e.attempts = attempt
            if not e.retryable or attempt == max_attempts:
                LOGGER.debug(f"Attempt {attempt} failed after {elapsed:.2f}s: {e}")
                raise
            LOGGER.warning(f"Download attempt {attempt}/{max_attempts} failed: {e}")
            continue

        elapsed = clock.monotonic() - started
        LOGGER.debug(f"Attempt {attempt} fetched {len(data)} bytes in {elapsed:.2f}s")
        return FetchResult(data=data, attempts=attempt)

    # The loop always returns or raises.
    raise RuntimeError("fetch_with_retry completed without result or exception")
