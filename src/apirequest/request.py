"""
Builds the outbound request of an API call and hands it to an executor.

Example::

    from apirequest import ApiContext, ClientOptions, RequestDescriptor, create_api_request

    context = ApiContext(options=ClientOptions(auth="my-api-key"))
    response = await create_api_request(
        RequestDescriptor(
            params={"bucket": "photos", "requestBody": {"name": "cat.png"}},
            context=context,
            url="https://storage.example.com/b/{bucket}/o",
            method="POST",
            media_url="https://storage.example.com/upload/b/{bucket}/o",
            required_params=["bucket"],
            path_params=["bucket"],
        )
    )
"""

import asyncio
import inspect
from collections.abc import Mapping
from typing import Any

import uritemplate

from .client_types import RequestExecutor
from .context import RequestDescriptor
from .credentials import Capability, Credential
from .env import LOG
from .options import (
    FinalOptions,
    build_user_agent,
    deep_merge,
    default_validate_status,
    is_browser,
    merge_headers,
    serialize_params,
)
from .params import ResolvedRequest, resolve_parameters
from .transport import DefaultTransporter
from .uploads import MultipartRelatedStream


def _template_value(value: Any) -> Any:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (str, list, tuple, Mapping)) or value is None:
        return value
    return str(value)


def expand_url(template: str, values: Mapping[str, Any]) -> str:
    """RFC 6570 expansion. Variables the template does not reference are ignored."""
    return uritemplate.expand(template, {k: _template_value(v) for k, v in values.items()})


def _transport_defaults(descriptor: RequestDescriptor) -> dict[str, Any]:
    context = descriptor.context
    root = context.root.options.transport if context.root is not None else None
    return deep_merge(root, context.options.transport)


def materialize(resolved: ResolvedRequest, descriptor: RequestDescriptor) -> FinalOptions:
    """
    Turn resolved parameters into the final request options.

    Upload endpoints with media send either the raw media (``uploadType=media``)
    or, when a request body is present too, a ``multipart/related`` stream
    (``uploadType=multipart``). Everything else sends the request body as is.
    """
    defaults = _transport_defaults(descriptor)
    options = deep_merge(defaults, descriptor.options)

    template_values = resolved.template_values
    url = descriptor.url or options.get("url")
    if url:
        url = expand_url(url, template_values)
    media_url = expand_url(descriptor.media_url, template_values) if descriptor.media_url else None

    params = dict(resolved.params)
    media = resolved.media
    body = resolved.body
    generated: dict[str, str] = {}

    if media_url and media.has_body:
        url = media_url
        if body is not None:
            params["uploadType"] = "multipart"
            body_mime = body.get("mimeType") if isinstance(body, Mapping) else None
            multipart = MultipartRelatedStream(
                body,
                media.body,
                media_content_type=media.mime_type or body_mime or resolved.default_mime_type,
                on_progress=options.get("on_upload_progress"),
            )
            generated["Content-Type"] = multipart.content_type
            data: Any = multipart
            LOG.debug(f"Upload mode: multipart (boundary={multipart.boundary})")
        else:
            params["uploadType"] = "media"
            generated["Content-Type"] = media.mime_type or resolved.default_mime_type
            data = media.body
            LOG.debug("Upload mode: media")
    else:
        data = body

    if not is_browser():
        generated["Accept-Encoding"] = "gzip"
        generated["User-Agent"] = build_user_agent(options.get("user_agent_directives"))

    computed: dict[str, Any] = {
        "url": url,
        "method": descriptor.method,
        "params": params,
        "data": data,
        "params_serializer": serialize_params,
        "validate_status": options.get("validate_status") or default_validate_status,
        "retry": True if options.get("retry") is None else options["retry"],
    }

    merged = {**options, **computed}
    merged["headers"] = merge_headers(options.get("headers"), generated, resolved.headers)
    # authorization belongs to the dispatch step
    merged.pop("auth", None)
    merged.pop("user_agent_directives", None)
    return FinalOptions.from_mapping(merged)


async def dispatch(
    options: FinalOptions,
    credential: Credential | None,
    transporter: RequestExecutor | None = None,
) -> Any:
    if isinstance(credential, Capability):
        LOG.debug("Dispatch: authorized capability")
        return await credential.request(options)
    LOG.debug("Dispatch: default transporter")
    result = (transporter or DefaultTransporter()).request(options)
    if inspect.isawaitable(result):
        return await result
    return result


async def create_api_request(
    descriptor: RequestDescriptor, *, transporter: RequestExecutor | None = None
) -> Any:
    """
    Resolve, materialize and send one API call.

    Args:
        descriptor: The call to make.
        transporter: Executor used when no credential capability is configured.
            Defaults to :class:`~apirequest.transport.DefaultTransporter`.

    Raises:
        MissingParametersError: before any request is built.
        APIError: when the response status is rejected.
        TransportError: when the request could not be sent.
    """
    resolved = await resolve_parameters(descriptor)
    options = materialize(resolved, descriptor)
    return await dispatch(options, resolved.credential, transporter)


def create_api_request_sync(
    descriptor: RequestDescriptor, *, transporter: RequestExecutor | None = None
) -> Any:
    """Blocking variant of :func:`create_api_request` for code without an event loop."""
    return asyncio.run(create_api_request(descriptor, transporter=transporter))
