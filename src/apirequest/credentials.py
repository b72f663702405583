"""
Credentials: a raw API key, or a capability that authorizes and sends requests.
"""

import inspect
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Union

from .client_types import RequestExecutor
from .context import ClientOptions
from .transport import DefaultTransporter

if TYPE_CHECKING:
    from .options import FinalOptions


@dataclass(frozen=True, slots=True)
class ApiKey:
    key: str

    def __repr__(self) -> str:
        return "ApiKey(key=***)"


@dataclass(frozen=True, slots=True)
class Capability:
    """Wraps any object able to authorize and execute a request."""

    requester: RequestExecutor

    async def request(self, options: "FinalOptions") -> Any:
        result = self.requester.request(options)
        if inspect.isawaitable(result):
            return await result
        return result


Credential = Union[ApiKey, Capability]


def as_credential(value: Any) -> Credential | None:
    if value is None or isinstance(value, (ApiKey, Capability)):
        return value
    if isinstance(value, str):
        return ApiKey(value) if value else None
    if callable(getattr(value, "request", None)):
        return Capability(value)
    raise TypeError(f"unsupported credential type: {type(value).__name__}")


async def resolve_credential(*sources: Any) -> Credential | None:
    """
    Return the first configured credential, awaiting pending ones.

    ``ClientOptions`` sources are resolved through their store, so a pending
    client credential is awaited once and reused by later calls.
    """
    for source in sources:
        if isinstance(source, ClientOptions):
            source = await source.resolve_auth()
        elif inspect.isawaitable(source):
            source = await source
        credential = as_credential(source)
        if credential is not None:
            return credential
    return None


class BearerTokenAuth:
    """
    Capability sending requests with ``Authorization: Bearer <token>``.

    An ``Authorization`` header already set by the caller is kept.
    """

    def __init__(self, token: str, *, transporter: DefaultTransporter | None = None) -> None:
        if not token:
            raise ValueError("token is required")
        self._token = token
        self._transporter = transporter

    async def request(self, options: "FinalOptions") -> Any:
        if "Authorization" not in options.headers:
            options.headers["Authorization"] = f"Bearer {self._token}"
        transporter = self._transporter or DefaultTransporter()
        return await transporter.request(options)
