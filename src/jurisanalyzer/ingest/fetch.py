"""Portal fetcher — download a decision page through ordered strategies.

Strategies are tried in order (direct first, then the configured proxy
intermediaries). Each attempt is bounded:
- Allowed URL schemes: https:// and http:// only.
- Content-Type whitelist: text/html, application/xhtml+xml and text/plain.
- Max response body: 5 MB.
- Timeout: ingest.fetch_timeout seconds (connect + read).
- Max redirects: 3.
An attempt returning less than ingest.min_fetch_length characters counts as a
failure. When every strategy fails, FetchExhausted is raised so the caller can
ask for a manual capture.
"""

from __future__ import annotations

import logging
import urllib.error
import urllib.parse
import urllib.request
from dataclasses import dataclass
from http.client import HTTPResponse

from jurisanalyzer.config import IngestCfg

logger = logging.getLogger(__name__)

_USER_AGENT = "Mozilla/5.0 (compatible; jurisanalyzer/0.1)"
_MAX_BYTES = 5 * 1024 * 1024  # 5 MB
_MAX_REDIRECTS = 3
_ALLOWED_SCHEMES = {"https", "http"}
_ALLOWED_CONTENT_TYPES = {"text/html", "application/xhtml+xml", "text/plain"}
_DIRECT_TEMPLATE = "{url}"


class FetchExhausted(RuntimeError):
    """Raised when no fetch strategy produced usable content for a URL."""

    def __init__(self, url: str, attempts: list[str]) -> None:
        self.url = url
        self.attempts = attempts
        detail = "; ".join(attempts) if attempts else "no strategies configured"
        super().__init__(f"All fetch strategies failed for '{url}': {detail}")


@dataclass(frozen=True)
class FetchStrategy:
    """One way of reaching a URL.

    Attributes:
        name: Label used in logs and error messages.
        template: ``"{url}"`` for a direct request, or an intermediary URL with
            a ``{url}`` placeholder that receives the percent-encoded target.
    """

    name: str
    template: str = _DIRECT_TEMPLATE

    def build_url(self, url: str) -> str:
        if self.template == _DIRECT_TEMPLATE:
            return url
        return self.template.replace("{url}", urllib.parse.quote(url, safe=""))


@dataclass
class FetchResult:
    content: str
    strategy: str


class PortalFetcher:
    """Fetch decision pages, falling back through *strategies* in order."""

    def __init__(
        self,
        strategies: list[FetchStrategy],
        timeout: float = 20.0,
        min_length: int = 500,
    ) -> None:
        self.strategies = list(strategies)
        self.timeout = timeout
        self.min_length = min_length

    @classmethod
    def from_config(cls, cfg: IngestCfg) -> PortalFetcher:
        strategies = [FetchStrategy("direct")]
        for template in cfg.proxies:
            host = urllib.parse.urlparse(template).hostname or template
            strategies.append(FetchStrategy(f"proxy:{host}", template))
        return cls(strategies, timeout=cfg.fetch_timeout, min_length=cfg.min_fetch_length)

    def fetch(self, url: str) -> FetchResult:
        """Return the content of *url* from the first strategy that succeeds.

        Raises:
            ValueError: If *url* is not an http(s) URL.
            FetchExhausted: If every strategy failed or returned too little.
        """
        _validate_scheme(url)
        attempts: list[str] = []
        for strategy in self.strategies:
            target = strategy.build_url(url)
            try:
                body, charset = self._fetch(target)
            except (RuntimeError, ValueError, OSError) as exc:
                logger.info("Fetch via %s failed for %s: %s", strategy.name, url, exc)
                attempts.append(f"{strategy.name}: {exc}")
                continue

            text = _decode(body, charset)
            if len(text.strip()) < self.min_length:
                logger.info(
                    "Fetch via %s returned %d chars for %s (< %d)",
                    strategy.name,
                    len(text.strip()),
                    url,
                    self.min_length,
                )
                attempts.append(f"{strategy.name}: content too short")
                continue

            return FetchResult(content=text, strategy=strategy.name)

        raise FetchExhausted(url, attempts)

    def _fetch(self, target: str) -> tuple[bytes, str | None]:
        """Fetch *target* with timeout, redirect limit, size cap, and Content-Type check.

        Returns (body_bytes, charset or None).
        """
        request = urllib.request.Request(target, headers={"User-Agent": _USER_AGENT})
        opener = urllib.request.build_opener(_LimitedRedirectHandler(_MAX_REDIRECTS))

        try:
            response: HTTPResponse = opener.open(request, timeout=self.timeout)
        except urllib.error.URLError as exc:
            raise RuntimeError(f"Failed to fetch URL '{target}': {exc}") from exc

        with response:
            raw_ct = response.headers.get("Content-Type", "text/html")
            ct = raw_ct.split(";")[0].strip().lower()
            if ct not in _ALLOWED_CONTENT_TYPES:
                raise ValueError(f"Unsupported Content-Type '{ct}' for URL '{target}'.")

            body = response.read(_MAX_BYTES + 1)
            if len(body) > _MAX_BYTES:
                raise ValueError(
                    f"Response body exceeds {_MAX_BYTES // (1024 * 1024)} MB limit for URL '{target}'."
                )

        return body, response.headers.get_content_charset()


def _validate_scheme(url: str) -> None:
    parsed = urllib.parse.urlparse(url)
    if parsed.scheme not in _ALLOWED_SCHEMES:
        raise ValueError(
            f"Unsupported URL scheme '{parsed.scheme}'. Only https:// and http:// are allowed."
        )


def _decode(body: bytes, charset: str | None) -> str:
    try:
        return body.decode(charset or "utf-8", errors="replace")
    except LookupError:
        return body.decode("utf-8", errors="replace")


class _LimitedRedirectHandler(urllib.request.HTTPRedirectHandler):
    """Raise an error after more than *max_redirects* redirects."""

    def __init__(self, max_redirects: int) -> None:
        self._max_redirects = max_redirects
        self._count = 0

    def redirect_request(self, req, fp, code, msg, headers, newurl):
        self._count += 1
        if self._count > self._max_redirects:
            raise RuntimeError(
                f"Too many redirects (>{self._max_redirects}) for URL '{req.full_url}'."
            )
        return super().redirect_request(req, fp, code, msg, headers, newurl)
