"""
Per-client and process-wide option stores, and the per-call request descriptor.
"""

import asyncio
import inspect
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from .config import ApiRequestConfig


@dataclass(slots=True)
class ClientOptions:
    """
    Defaults shared by every request made through one client.

    ``params`` is shared by reference between concurrent calls on the same
    client. :meth:`drop_params` replaces it copy-on-write, so readers never see
    a half-updated dict. Concurrent writers are last-writer-wins.
    """

    params: dict[str, Any] = field(default_factory=dict)
    auth: Any = None
    transport: dict[str, Any] = field(default_factory=dict)

    def drop_params(self, names: Iterable[str]) -> list[str]:
        dropped = [name for name in names if name in self.params]
        if dropped:
            self.params = {k: v for k, v in self.params.items() if k not in dropped}
        return dropped

    async def resolve_auth(self) -> Any:
        """
        Await a pending ``auth`` once and keep the result for later calls.

        Concurrent callers share one task wrapping the pending credential.
        """
        if inspect.isawaitable(self.auth):
            if not isinstance(self.auth, asyncio.Future):
                self.auth = asyncio.ensure_future(self.auth)
            self.auth = await self.auth
        return self.auth


@dataclass(slots=True)
class ApiContext:
    options: ClientOptions = field(default_factory=ClientOptions)
    # process-wide (top-level) context; None for a standalone client
    root: "ApiContext | None" = None


def build_root_context(config: ApiRequestConfig) -> ApiContext:
    transport: dict[str, Any] = {"retry": config.retry}
    if config.timeout is not None:
        transport["timeout"] = config.timeout
    if config.user_agent_directives:
        transport["user_agent_directives"] = [dict(d) for d in config.user_agent_directives]
    return ApiContext(
        options=ClientOptions(
            params=dict(config.default_params),
            auth=config.api_key,
            transport=transport,
        )
    )


@dataclass(slots=True)
class RequestDescriptor:
    """
    Declarative description of one API call.

    Args:
        params: Per-call parameters. May carry ``auth``, ``media``, ``headers``
            and the request body as ``requestBody`` (or the legacy ``resource``).
        context: Client context holding per-client and process-wide defaults.
        url: RFC 6570 URL template of the endpoint.
        method: HTTP method.
        required_params: Names that must resolve to a value, in order.
        path_params: Names consumed by the URL templates; never sent as query.
        media_url: RFC 6570 URL template of the upload endpoint, if any.
        options: Per-call transport options (``timeout``, ``validate_status``,
            ``on_upload_progress``, ``user_agent_directives``...).
        aliases: Static table of aliased parameter name to real name. When
            omitted, every key ending in ``_`` is un-aliased.
    """

    params: Mapping[str, Any] = field(default_factory=dict)
    context: ApiContext = field(default_factory=ApiContext)
    url: str | None = None
    method: str = "GET"
    required_params: Sequence[str] = ()
    path_params: Sequence[str] = ()
    media_url: str | None = None
    options: Mapping[str, Any] = field(default_factory=dict)
    aliases: Mapping[str, str] | None = None
