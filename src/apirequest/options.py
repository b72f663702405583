"""
Outbound request options and the helpers that assemble them.
"""

import sys
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import quote, urlencode

import httpx

from ._constants import PACKAGE_NAME, VERSION
from .client_types import ProgressCallback

_KNOWN_FIELDS = (
    "url",
    "method",
    "headers",
    "params",
    "data",
    "params_serializer",
    "validate_status",
    "retry",
    "on_upload_progress",
    "timeout",
)


def is_browser() -> bool:
    """True when running inside a browser-hosted interpreter such as Pyodide."""
    return sys.platform == "emscripten"


def _stringify(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def serialize_params(params: Mapping[str, Any]) -> str:
    """
    Serialize query parameters.

    Sequences repeat the key (``tags=a&tags=b``) and spaces become ``%20``.
    ``None`` values are skipped.
    """
    pairs: list[tuple[str, str]] = []
    for key, value in params.items():
        if value is None:
            continue
        values = value if isinstance(value, (list, tuple)) else [value]
        for item in values:
            if item is None:
                continue
            pairs.append((key, _stringify(item)))
    return urlencode(pairs, quote_via=quote)


def default_validate_status(status: int) -> bool:
    # 304 is a success for conditional requests using cache validators
    return 200 <= status < 300 or status == 304


def deep_merge(*mappings: Mapping[str, Any] | None) -> dict[str, Any]:
    merged: dict[str, Any] = {}
    for mapping in mappings:
        if not mapping:
            continue
        for key, value in mapping.items():
            current = merged.get(key)
            if isinstance(value, Mapping) and isinstance(current, Mapping):
                merged[key] = deep_merge(current, value)
            elif isinstance(value, Mapping):
                merged[key] = deep_merge(value)
            else:
                merged[key] = value
    return merged


def merge_headers(*mappings: Mapping[str, Any] | None) -> httpx.Headers:
    """Case-insensitive header merge, later mappings win."""
    headers = httpx.Headers()
    for mapping in mappings:
        if mapping:
            headers.update({str(k): _stringify(v) for k, v in mapping.items()})
    return headers


@dataclass(frozen=True, slots=True)
class UserAgentDirective:
    product: str
    version: str
    comment: str | None = None

    @classmethod
    def coerce(cls, value: "UserAgentDirective | Mapping[str, Any]") -> "UserAgentDirective":
        if isinstance(value, UserAgentDirective):
            return value
        return cls(
            product=str(value["product"]),
            version=str(value["version"]),
            comment=value.get("comment"),
        )

    def render(self) -> str:
        line = f"{self.product}/{self.version}"
        if self.comment:
            line += f" ({self.comment})"
        return line


def build_user_agent(
    directives: Iterable[UserAgentDirective | Mapping[str, Any]] | None = None,
) -> str:
    """Render caller directives followed by this package's own directive."""
    rendered = [UserAgentDirective.coerce(d) for d in directives or ()]
    rendered.append(UserAgentDirective(product=PACKAGE_NAME, version=VERSION, comment="gzip"))
    return " ".join(d.render() for d in rendered)


@dataclass(slots=True)
class FinalOptions:
    """
    Fully materialized options handed to a request executor.

    ``data`` is one of ``None``, a JSON-able request body, ``str``/``bytes``,
    a file-like object, a (sync or async) iterable of bytes, or a
    :class:`~apirequest.uploads.MultipartRelatedStream`.
    """

    url: str | None = None
    method: str = "GET"
    headers: httpx.Headers = field(default_factory=httpx.Headers)
    params: dict[str, Any] = field(default_factory=dict)
    data: Any = None
    params_serializer: Callable[[Mapping[str, Any]], str] = serialize_params
    validate_status: Callable[[int], bool] = default_validate_status
    retry: bool = True
    on_upload_progress: ProgressCallback | None = None
    timeout: float | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, options: Mapping[str, Any]) -> "FinalOptions":
        known = {key: options[key] for key in _KNOWN_FIELDS if options.get(key) is not None}
        known["headers"] = merge_headers(options.get("headers"))
        known["params"] = dict(options.get("params") or {})
        extra = {key: value for key, value in options.items() if key not in _KNOWN_FIELDS}
        return cls(**known, extra=extra)

    def build_url(self) -> str:
        if not self.url:
            raise ValueError("request url is not set")
        query = self.params_serializer(self.params) if self.params else ""
        if not query:
            return self.url
        separator = "&" if "?" in self.url else "?"
        return f"{self.url}{separator}{query}"
