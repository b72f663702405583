"""
Default, unauthenticated request executor backed by ``httpx``.
"""

from collections.abc import AsyncIterable, Mapping
from typing import Any

import httpx

from .env import LOG
from .errors import APIError, TransportError
from .options import FinalOptions
from .uploads import is_media_stream, iter_media_chunks


def _body_kwargs(data: Any) -> dict[str, Any]:
    if data is None:
        return {}
    if isinstance(data, (str, bytes)):
        return {"content": data}
    if isinstance(data, (bytearray, memoryview)):
        return {"content": bytes(data)}
    if isinstance(data, AsyncIterable):
        return {"content": data}
    if is_media_stream(data):
        return {"content": iter_media_chunks(data)}
    return {"json": data}


class DefaultTransporter:
    """
    Sends :class:`~apirequest.options.FinalOptions` with an ``httpx.AsyncClient``.

    When no client is given a short-lived one is created per request. The
    ``retry`` flag is passed through untouched; no retries are attempted here.
    """

    def __init__(self, client: httpx.AsyncClient | None = None) -> None:
        self._client = client

    async def request(self, options: FinalOptions) -> httpx.Response:
        url = options.build_url()
        LOG.debug(f"Request: {options.method} {url}")
        if self._client is not None:
            return await self._send(self._client, url, options)
        async with httpx.AsyncClient() as client:
            return await self._send(client, url, options)

    async def _send(
        self, client: httpx.AsyncClient, url: str, options: FinalOptions
    ) -> httpx.Response:
        kwargs: dict[str, Any] = _body_kwargs(options.data)
        if options.timeout is not None:
            kwargs["timeout"] = options.timeout
        try:
            response = await client.request(
                options.method,
                url,
                headers=options.headers,
                **kwargs,
            )
        except httpx.HTTPError as exc:
            raise TransportError(str(exc)) from exc

        return self._handle_response(response, options)

    @staticmethod
    def _handle_response(response: httpx.Response, options: FinalOptions) -> httpx.Response:
        if options.validate_status(response.status_code):
            return response

        content_type = response.headers.get("content-type", "")
        parsed: Any = None
        if "application/json" in content_type or content_type.startswith("application/problem+json"):
            try:
                parsed = response.json()
            except ValueError:
                parsed = None

        message = response.reason_phrase
        code: int | None = None
        error: Any = None
        payload: Mapping[str, Any] | None = None
        if isinstance(parsed, Mapping):
            payload = parsed
            error = parsed.get("error")
            if isinstance(error, Mapping):
                # {"error": {"code": 404, "message": "..."}} style payloads
                message = str(error.get("message") or message)
                code_val = error.get("code")
            else:
                message = str(parsed.get("msg") or parsed.get("message") or message)
                code_val = parsed.get("code")
            if isinstance(code_val, int):
                code = code_val
        raise APIError(
            status_code=response.status_code,
            code=code,
            message=message,
            error=error,
            payload=payload,
        )
