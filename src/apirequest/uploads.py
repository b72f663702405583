"""
Utilities for media uploads and ``multipart/related`` body assembly.
"""

import asyncio
import inspect
import json
import uuid
from collections.abc import AsyncIterator, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, cast

from ._constants import APPLICATION_JSON, DEFAULT_CHUNK_SIZE, OCTET_STREAM, TEXT_PLAIN
from .client_types import ProgressCallback, UploadProgress

CRLF = b"\r\n"

_BUFFERED_TYPES = (str, bytes, bytearray, memoryview)
_EXHAUSTED = object()


def is_media_stream(body: Any) -> bool:
    """
    Streams are readable or iterable objects other than in-memory buffers and
    JSON containers.
    """
    if body is None or isinstance(body, _BUFFERED_TYPES + (Mapping, list, tuple)):
        return False
    return hasattr(body, "read") or hasattr(body, "__aiter__") or hasattr(body, "__iter__")


def default_mime_type(body: Any) -> str:
    return TEXT_PLAIN if isinstance(body, str) else OCTET_STREAM


def _to_bytes(chunk: Any) -> bytes:
    if isinstance(chunk, str):
        return chunk.encode("utf-8")
    return bytes(chunk)


@dataclass(slots=True)
class MediaSpec:
    """
    Media payload for upload endpoints.

    ``body`` is ``str``/``bytes`` for buffered uploads, or a stream: a file-like
    object exposing ``read``, or a sync or async iterable of byte chunks.
    """

    body: Any = None
    mime_type: str | None = None

    @property
    def has_body(self) -> bool:
        if self.body is None:
            return False
        if isinstance(self.body, _BUFFERED_TYPES):
            return len(self.body) > 0
        return True

    @property
    def is_stream(self) -> bool:
        return is_media_stream(self.body)

    @property
    def default_mime_type(self) -> str:
        return default_mime_type(self.body)


def normalize_media(media: MediaSpec | Mapping[str, Any] | None) -> MediaSpec:
    if media is None:
        return MediaSpec()
    if isinstance(media, MediaSpec):
        return media
    if isinstance(media, Mapping):
        return MediaSpec(
            body=media.get("body"),
            mime_type=media.get("mimeType") or media.get("mime_type"),
        )
    raise TypeError("Unsupported media payload")


async def iter_media_chunks(
    body: Any, *, chunk_size: int = DEFAULT_CHUNK_SIZE
) -> AsyncIterator[bytes]:
    """
    Iterate a media stream as ``bytes`` chunks without buffering it.

    Blocking sources (file objects with a sync ``read``, plain iterables) are
    read in a worker thread so the event loop keeps running. Errors raised by
    the source propagate to the caller unchanged.
    """
    if isinstance(body, _BUFFERED_TYPES):
        yield _to_bytes(body)
        return
    if hasattr(body, "__aiter__"):
        async for chunk in body:
            if chunk:
                yield _to_bytes(chunk)
        return
    if hasattr(body, "read"):
        async_read = inspect.iscoroutinefunction(body.read)
        while True:
            if async_read:
                chunk = await body.read(chunk_size)
            else:
                chunk = await asyncio.to_thread(body.read, chunk_size)
            if not chunk:
                return
            yield _to_bytes(chunk)
    iterator = iter(body)
    while True:
        chunk = await asyncio.to_thread(next, iterator, _EXHAUSTED)
        if chunk is _EXHAUSTED:
            return
        if chunk:
            yield _to_bytes(chunk)


async def _emit_progress(callback: ProgressCallback | None, bytes_read: int) -> None:
    if callback is None:
        return
    result = callback(UploadProgress(bytes_read=bytes_read))
    if inspect.isawaitable(result):
        await cast(Awaitable[None], result)


class AssemblyState(Enum):
    IDLE = "idle"
    EMITTING_METADATA = "emitting_metadata"
    EMITTING_MEDIA_PREAMBLE = "emitting_media_preamble"
    STREAMING_MEDIA_BODY = "streaming_media_body"
    EMITTING_TERMINATOR = "emitting_terminator"
    DONE = "done"


class MultipartRelatedStream:
    """
    Lazily assembled ``multipart/related`` body: a JSON metadata part followed
    by a media part.

    The media part is forwarded chunk by chunk, so a stream of unknown length
    is never buffered. For a streamed media body the closing delimiter is only
    produced once the source reports exhaustion. The stream can be consumed
    once.
    """

    def __init__(
        self,
        metadata: Any,
        media_body: Any,
        *,
        media_content_type: str,
        boundary: str | None = None,
        on_progress: ProgressCallback | None = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> None:
        self.metadata = metadata
        self.media_body = media_body
        self.media_content_type = media_content_type
        self.boundary = boundary or str(uuid.uuid4())
        self.on_progress = on_progress
        self.chunk_size = chunk_size
        self.bytes_read = 0
        self.state = AssemblyState.IDLE

    @property
    def content_type(self) -> str:
        return f"multipart/related; boundary={self.boundary}"

    def _preamble(self, content_type: str) -> bytes:
        return f"--{self.boundary}\r\nContent-Type: {content_type}\r\n\r\n".encode("utf-8")

    def _terminator(self) -> bytes:
        return f"--{self.boundary}--".encode("utf-8")

    async def __aiter__(self) -> AsyncIterator[bytes]:
        if self.state is not AssemblyState.IDLE:
            raise RuntimeError("multipart stream has already been consumed")

        self.state = AssemblyState.EMITTING_METADATA
        yield self._preamble(APPLICATION_JSON)
        yield json.dumps(self.metadata, separators=(",", ":"), ensure_ascii=False).encode("utf-8")
        yield CRLF

        self.state = AssemblyState.EMITTING_MEDIA_PREAMBLE
        yield self._preamble(self.media_content_type)

        self.state = AssemblyState.STREAMING_MEDIA_BODY
        if is_media_stream(self.media_body):
            async for chunk in iter_media_chunks(self.media_body, chunk_size=self.chunk_size):
                self.bytes_read += len(chunk)
                await _emit_progress(self.on_progress, self.bytes_read)
                yield chunk
            self.state = AssemblyState.EMITTING_TERMINATOR
            yield CRLF + self._terminator()
        else:
            yield _to_bytes(self.media_body)
            yield CRLF
            self.state = AssemblyState.EMITTING_TERMINATOR
            yield self._terminator()

        self.state = AssemblyState.DONE

    async def read_all(self) -> bytes:
        """Drain the stream into memory. Meant for small payloads and tests."""
        return b"".join([chunk async for chunk in self])
