"""
URL handling for heritrix seeds: normalization to an absolute uri and
derivation of a Veidemann entity name from the seed hostname.

Both operations share `parse_url`, which tries the raw string first and
falls back to an inferred `http://` scheme when the string carries none.
Parse failures are data outcomes: they are written as one free-text line to
the error-url channel and reported as `None`, never raised.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, TextIO
from urllib.parse import SplitResult, urlsplit, urlunsplit

from . import config

logger = logging.getLogger(__name__)

# Characters percent-escaped in path, query and fragment; existing %XX stays as is
_AUTO_ESCAPE = {ord(c): f"%{ord(c):02X}" for c in config.URL_AUTO_ESCAPE_CHARS}


@dataclass(frozen=True)
class ParsedUrl:
    """Result of one parse strategy; `url` is set only when every check passed."""

    raw: str
    candidate: str
    parts: Optional[SplitResult] = None
    scheme: str = ""
    hostname: Optional[str] = None
    url: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.url is not None


def _is_valid_host(hostname: Optional[str]) -> bool:
    if not hostname:
        return False
    if ":" in hostname:
        return bool(config.IPV6_HOST_PATTERN.fullmatch(hostname))
    return bool(config.HOSTNAME_PATTERN.fullmatch(hostname))


def _ascii_host(hostname: str) -> str:
    if ":" in hostname:
        return f"[{hostname}]"
    if hostname.isascii():
        return hostname
    # UnicodeError (a ValueError) on empty or oversized labels
    return hostname.encode("idna").decode("ascii")


def _escape(component: str) -> str:
    return component.translate(_AUTO_ESCAPE)


def _rebuild_netloc(parts: SplitResult, hostname: str) -> str:
    """
    Return netloc with a lowercased, punycode-encoded host; raises ValueError
    on a bad port or a host that cannot be IDNA-encoded.
    """
    host = _ascii_host(hostname)
    userinfo = ""
    if parts.username is not None:
        userinfo = parts.username
        if parts.password is not None:
            userinfo += ":" + parts.password
        userinfo += "@"
    port = parts.port
    if port is not None:
        return f"{userinfo}{host}:{port}"
    return f"{userinfo}{host}"


def _parse_attempt(raw: str, candidate: str) -> ParsedUrl:
    try:
        parts = urlsplit(candidate)
    except ValueError as exc:
        logger.warning("[!] Could not parse url %r: %s", candidate, exc)
        return ParsedUrl(raw=raw, candidate=candidate, error=str(exc))

    scheme = parts.scheme.lower()
    hostname = parts.hostname if _is_valid_host(parts.hostname) else None
    # netloc is only populated when the '//' authority marker follows the scheme
    if not (scheme and parts.netloc and hostname):
        return ParsedUrl(raw=raw, candidate=candidate, parts=parts, scheme=scheme, hostname=hostname)

    try:
        netloc = _rebuild_netloc(parts, hostname)
    except ValueError as exc:
        logger.warning("[!] Could not rebuild url %r: %s", candidate, exc)
        return ParsedUrl(
            raw=raw,
            candidate=candidate,
            parts=parts,
            scheme=scheme,
            hostname=hostname,
            error=str(exc),
        )

    url = urlunsplit((scheme, netloc, _escape(parts.path or "/"), _escape(parts.query), _escape(parts.fragment)))
    return ParsedUrl(
        raw=raw,
        candidate=candidate,
        parts=parts,
        scheme=scheme,
        hostname=hostname,
        url=url or None,
    )


def parse_url(url_string: Any) -> ParsedUrl:
    """
    Parse a raw seed url, retrying with the default scheme when the string
    as given yields no scheme (including when the first attempt raised).
    """
    raw = url_string if isinstance(url_string, str) else str(url_string)
    candidate = raw.strip()
    parsed = _parse_attempt(raw, candidate)
    if parsed.scheme:
        return parsed
    return _parse_attempt(raw, config.DEFAULT_SCHEME_PREFIX + candidate)


def describe(parsed: ParsedUrl) -> Dict[str, Any]:
    """Return the partial parse state as a JSON-serializable dict."""
    state: Dict[str, Any] = {"candidate": parsed.candidate, "scheme": parsed.scheme or None}
    if parsed.parts is not None:
        state.update(
            {
                "netloc": parsed.parts.netloc,
                "path": parsed.parts.path,
                "query": parsed.parts.query,
                "fragment": parsed.parts.fragment,
            }
        )
    state["hostname"] = parsed.hostname
    if parsed.error:
        state["error"] = parsed.error
    return state


def _diagnostic(parsed: ParsedUrl) -> str:
    return json.dumps(describe(parsed), ensure_ascii=False)


def get_uri(url_string: Any, error_log: TextIO) -> Optional[str]:
    """Return the normalized absolute url, or None after logging a diagnostic line."""
    parsed = parse_url(url_string)
    if parsed.ok:
        return parsed.url
    error_log.write(f"{parsed.raw}: {_diagnostic(parsed)}\n")
    return None


def _capitalize_first(text: str) -> str:
    return text[:1].upper() + text[1:]


def get_entity_name(url_string: Any, error_log: TextIO) -> Optional[str]:
    """
    Derive a display name from the seed hostname.

    `www.nrk.no` -> `Nrk`, `blogg.vg.no` -> `Blogg vg`. Hostnames without a
    dot map to a single blank, and `www.x` collapses to an empty string;
    neither is treated as a failure here. Internationalized hosts keep their
    Unicode labels.
    """
    parsed = parse_url(url_string)
    hostname = parsed.hostname
    if not hostname:
        error_log.write(f"Could not create entityname based on hostname from url: {parsed.raw}{_diagnostic(parsed)}\n")
        return None

    if "." not in hostname:
        return _capitalize_first(config.DOTLESS_HOST_NAME)

    labels = hostname.split(".")
    labels.pop()
    if labels and "www" in labels[0]:
        labels.pop(0)
    return _capitalize_first(" ".join(labels))
