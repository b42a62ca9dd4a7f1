"""
Source Enricher - Fills and checks the network-derived parts of a source.

Two jobs:
  - compute each app's ``size`` from its published build
  - verify that every URL in the source answers

Requests go through a single httpx.Client. Transport failures are retried
with backoff; HTTP error statuses are not.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Tuple

import httpx

from common.decorators import retry, timed
from common.exceptions import DownloadError
from common.logging_config import LogContext

from .config import ToolConfig
from .models import SourceCatalog, is_absolute_uri

logger = logging.getLogger(__name__)

# Servers that refuse HEAD answer with one of these
HEAD_UNSUPPORTED = (405, 501)


@dataclass
class UrlCheck:
    """Result of probing one URL."""
    url: str
    field: str
    bundle_id: str = ""
    ok: bool = False
    status_code: Optional[int] = None
    error: Optional[str] = None

    def to_dict(self):
        return {
            "bundle_id": self.bundle_id,
            "field": self.field,
            "url": self.url,
            "ok": self.ok,
            "status_code": self.status_code,
            "error": self.error,
        }


@dataclass
class SizeChange:
    """Size update for one app."""
    bundle_id: str
    old_size: int
    new_size: int

    @property
    def changed(self) -> bool:
        return self.old_size != self.new_size


@dataclass
class EnrichResult:
    """Outcome of an enrichment pass."""
    catalog: SourceCatalog
    changes: List[SizeChange] = field(default_factory=list)
    failures: List[Tuple[str, DownloadError]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures


class EnrichProgress:
    """Progress reporting for multi-request passes."""

    def __init__(self, callback: Optional[Callable[[int, int, str], None]] = None):
        self.callback = callback

    def update(self, current: int, total: int, message: str = "") -> None:
        if self.callback:
            self.callback(current, total, message)


class SourceEnricher:
    """
    Network-facing helper for a source catalog.

    Use as a context manager so the HTTP client it creates is closed:

        with SourceEnricher(config) as enricher:
            result = enricher.enrich_sizes(catalog)
    """

    def __init__(
        self,
        config: Optional[ToolConfig] = None,
        client: Optional[httpx.Client] = None,
    ):
        """
        Initialize SourceEnricher.

        Args:
            config: Timeouts, retries and headers; defaults when None
            client: Pre-built client (tests pass one with a mock transport).
                A client passed in is not closed by this object.
        """
        self.config = config or ToolConfig()
        self._owns_client = client is None
        self._client = client or httpx.Client(
            timeout=self.config.timeout,
            follow_redirects=self.config.follow_redirects,
            headers={"User-Agent": self.config.user_agent},
        )
        self._progress_callback: Optional[Callable[[int, int, str], None]] = None

        with_retry = retry(
            max_attempts=self.config.max_retries,
            delay=self.config.retry_delay,
            exceptions=(httpx.TransportError,),
        )
        self._head = with_retry(self._do_head)
        self._stream_status = with_retry(self._do_stream_status)
        self._stream_length = with_retry(self._do_stream_length)

    def __enter__(self) -> "SourceEnricher":
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def set_progress_callback(self, callback: Callable[[int, int, str], None]) -> None:
        """Set callback for progress updates: (current, total, message)."""
        self._progress_callback = callback

    # ------------------------------------------------------------------
    # Raw requests
    # ------------------------------------------------------------------

    def _do_head(self, url: str) -> httpx.Response:
        return self._client.head(url)

    def _do_stream_status(self, url: str) -> int:
        with self._client.stream("GET", url) as response:
            return response.status_code

    def _do_stream_length(self, url: str) -> int:
        with self._client.stream("GET", url) as response:
            if 300 <= response.status_code < 400:
                raise DownloadError(
                    url, f"HTTP {response.status_code} redirect not followed",
                    status_code=response.status_code,
                )
            if response.status_code >= 400:
                raise DownloadError(
                    url, f"HTTP {response.status_code}", status_code=response.status_code
                )
            return sum(len(chunk) for chunk in response.iter_bytes())

    # ------------------------------------------------------------------
    # Size
    # ------------------------------------------------------------------

    @staticmethod
    def _content_length(response: httpx.Response) -> Optional[int]:
        value = response.headers.get("content-length")
        if value is None:
            return None
        try:
            length = int(value)
        except ValueError:
            return None
        # some CDNs answer HEAD with a zero length they do not mean
        return length if length > 0 else None

    @timed
    def fetch_size(self, url: str) -> int:
        """
        Size in bytes of the resource at ``url``.

        Uses the Content-Length of a HEAD response when the server gives
        one, otherwise downloads the body and counts it.

        Raises:
            DownloadError: On HTTP error status or persistent transport failure.
        """
        if not is_absolute_uri(url):
            raise DownloadError(url, "not an absolute URI")

        try:
            response = self._head(url)
            if response.status_code not in HEAD_UNSUPPORTED:
                if 300 <= response.status_code < 400:
                    raise DownloadError(
                        url, f"HTTP {response.status_code} redirect not followed",
                        status_code=response.status_code,
                    )
                if response.status_code >= 400:
                    raise DownloadError(
                        url, f"HTTP {response.status_code}",
                        status_code=response.status_code,
                    )
                length = self._content_length(response)
                if length is not None:
                    logger.debug(f"{url}: {length} bytes from Content-Length")
                    return length

            logger.debug(f"{url}: no usable Content-Length, downloading to measure")
            return self._stream_length(url)
        except (httpx.TransportError, httpx.TooManyRedirects) as e:
            raise DownloadError(url, str(e) or type(e).__name__, cause=e) from e

    # ------------------------------------------------------------------
    # Reachability
    # ------------------------------------------------------------------

    def check_url(self, url: str, field: str = "", bundle_id: str = "") -> UrlCheck:
        """Probe one URL. Never raises for network problems."""
        check = UrlCheck(url=url, field=field, bundle_id=bundle_id)

        if not is_absolute_uri(url):
            check.error = "not an absolute URI"
            return check

        try:
            status = self._head(url).status_code
            if status in HEAD_UNSUPPORTED:
                status = self._stream_status(url)
        except httpx.TransportError as e:
            check.error = str(e) or type(e).__name__
            logger.warning(f"{url}: {check.error}")
            return check

        check.status_code = status
        check.ok = status < 400
        if not check.ok:
            check.error = f"HTTP {status}"
            logger.warning(f"{url}: HTTP {status}")
        return check

    def check_catalog(
        self, catalog: SourceCatalog, bundle_id: Optional[str] = None
    ) -> List[UrlCheck]:
        """
        Probe every URL of every app (or of one app).

        Returns:
            One UrlCheck per URL, in document order.
        """
        targets = [
            (app.bundle_identifier, name, url)
            for app in catalog.apps
            if bundle_id is None or app.bundle_identifier == bundle_id
            for name, url in app.urls()
        ]
        progress = EnrichProgress(self._progress_callback)

        results = []
        for i, (app_id, name, url) in enumerate(targets, start=1):
            progress.update(i, len(targets), f"{app_id} {name}")
            results.append(self.check_url(url, field=name, bundle_id=app_id))

        failed = sum(1 for r in results if not r.ok)
        logger.info(f"Checked {len(results)} URL(s), {failed} failed")
        return results

    # ------------------------------------------------------------------
    # Enrichment
    # ------------------------------------------------------------------

    def enrich_sizes(
        self, catalog: SourceCatalog, bundle_id: Optional[str] = None
    ) -> EnrichResult:
        """
        Recompute ``size`` from each app's download URL.

        The given catalog is not modified; the result carries a new one.
        A failed app keeps its old size and is listed in ``failures``.
        """
        # positions, so apps sharing a bundle identifier stay distinct
        selected = [
            (index, app) for index, app in enumerate(catalog.apps)
            if bundle_id is None or app.bundle_identifier == bundle_id
        ]
        progress = EnrichProgress(self._progress_callback)
        result = EnrichResult(catalog=catalog)

        new_apps = {}
        for i, (index, app) in enumerate(selected, start=1):
            progress.update(i, len(selected), app.bundle_identifier)
            with LogContext(bundle_id=app.bundle_identifier, operation="enrich"):
                try:
                    size = self.fetch_size(app.download_url)
                except DownloadError as e:
                    logger.warning(f"Could not size {app.bundle_identifier}: {e.message}")
                    result.failures.append((app.bundle_identifier, e))
                    continue

                change = SizeChange(app.bundle_identifier, app.size, size)
                result.changes.append(change)
                if change.changed:
                    logger.info(f"{app.bundle_identifier}: size {app.size} -> {size}")
                    new_apps[index] = app.with_release(size=size)

        if new_apps:
            result.catalog = catalog.with_apps([
                new_apps.get(index, app) for index, app in enumerate(catalog.apps)
            ])
        return result
