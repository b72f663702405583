"""
Parameter resolution: merges parameter sources and splits out the request body,
media, headers and credential of a single API call.
"""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from ._constants import ALIAS_MARKER
from .context import RequestDescriptor
from .credentials import ApiKey, Credential, resolve_credential
from .env import LOG
from .errors import MissingParametersError
from .uploads import MediaSpec, normalize_media


@dataclass(slots=True)
class ResolvedRequest:
    """
    Output of :func:`resolve_parameters`.

    ``params`` holds query candidates only: path parameters are moved to
    ``path_params`` where URL template expansion can still reach them.
    """

    params: dict[str, Any]
    body: Any = None
    credential: Credential | None = None
    media: MediaSpec = field(default_factory=MediaSpec)
    headers: dict[str, Any] = field(default_factory=dict)
    path_params: dict[str, Any] = field(default_factory=dict)

    @property
    def default_mime_type(self) -> str:
        return self.media.default_mime_type

    @property
    def template_values(self) -> dict[str, Any]:
        return {**self.params, **self.path_params}


def merge_param_sources(descriptor: RequestDescriptor) -> dict[str, Any]:
    """Shallow merge: process-wide < per-client < per-call."""
    context = descriptor.context
    root_params = context.root.options.params if context.root is not None else {}
    return {**root_params, **context.options.params, **descriptor.params}


def get_missing_params(params: Mapping[str, Any], required: Sequence[str]) -> list[str]:
    return [name for name in required if params.get(name) is None]


def alias_table(params: Mapping[str, Any], aliases: Mapping[str, str] | None = None) -> dict[str, str]:
    if aliases is not None:
        return dict(aliases)
    return {
        key: key[: -len(ALIAS_MARKER)]
        for key in params
        if key.endswith(ALIAS_MARKER) and len(key) > len(ALIAS_MARKER)
    }


def unalias_params(params: dict[str, Any], aliases: Mapping[str, str]) -> None:
    for alias, name in aliases.items():
        if alias in params:
            params[name] = params.pop(alias)


async def resolve_parameters(descriptor: RequestDescriptor) -> ResolvedRequest:
    """
    Resolve the parameters of one call.

    Raises:
        MissingParametersError: if a required parameter is still unset once the
            body, media, headers and credential have been extracted and aliases
            resolved.
    """
    params = merge_param_sources(descriptor)
    context = descriptor.context

    media = normalize_media(params.pop("media", None))

    # ``requestBody`` wins over the legacy ``resource`` field; both are consumed
    request_body = params.pop("requestBody", None)
    resource = params.pop("resource", None)
    body = request_body if request_body is not None else resource

    credential = await resolve_credential(
        params.pop("auth", None),
        context.options,
        context.root.options if context.root is not None else None,
    )

    headers = dict(params.pop("headers", None) or {})

    unalias_params(params, alias_table(params, descriptor.aliases))

    missing = get_missing_params(params, descriptor.required_params)
    if missing:
        LOG.warning(f"Missing required parameters: {', '.join(missing)}")
        raise MissingParametersError(missing)

    path_params = {name: params.pop(name) for name in descriptor.path_params if name in params}
    dropped = context.options.drop_params(descriptor.path_params)
    if dropped:
        LOG.debug(f"Dropped path params from client defaults: {dropped}")

    if isinstance(credential, ApiKey):
        if not params.get("key"):
            params["key"] = credential.key
        credential = None

    return ResolvedRequest(
        params=params,
        body=body,
        credential=credential,
        media=media,
        headers=headers,
        path_params=path_params,
    )
