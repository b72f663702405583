import io
import threading
from collections.abc import AsyncIterator

import pytest

from apirequest.client_types import UploadProgress
from apirequest.uploads import (
    AssemblyState,
    MediaSpec,
    MultipartRelatedStream,
    is_media_stream,
    iter_media_chunks,
    normalize_media,
)


async def _chunks(*parts: bytes) -> AsyncIterator[bytes]:
    for part in parts:
        yield part


@pytest.mark.asyncio
async def test_multipart_with_string_media_is_exact() -> None:
    stream = MultipartRelatedStream(
        {"title": "t"},
        "hello",
        media_content_type="application/octet-stream",
        boundary="B",
    )

    content = await stream.read_all()

    assert content == (
        b"--B\r\nContent-Type: application/json\r\n\r\n"
        b'{"title":"t"}\r\n'
        b"--B\r\nContent-Type: application/octet-stream\r\n\r\n"
        b"hello\r\n"
        b"--B--"
    )
    assert stream.state is AssemblyState.DONE


@pytest.mark.asyncio
async def test_multipart_with_stream_media_defers_terminator() -> None:
    progress: list[int] = []
    stream = MultipartRelatedStream(
        {"name": "f"},
        _chunks(b"ab", b"cde"),
        media_content_type="image/png",
        boundary="B",
        on_progress=lambda event: progress.append(event.bytes_read),
    )

    iterator = stream.__aiter__()
    received = []
    while not received or received[-1] != b"cde":
        received.append(await iterator.__anext__())

    assert stream.state is AssemblyState.STREAMING_MEDIA_BODY
    assert progress == [2, 5]

    terminator = await iterator.__anext__()
    assert terminator == b"\r\n--B--"
    assert stream.state is AssemblyState.EMITTING_TERMINATOR

    with pytest.raises(StopAsyncIteration):
        await iterator.__anext__()
    assert stream.state is AssemblyState.DONE

    content = b"".join(received) + terminator
    assert content == (
        b"--B\r\nContent-Type: application/json\r\n\r\n"
        b'{"name":"f"}\r\n'
        b"--B\r\nContent-Type: image/png\r\n\r\n"
        b"abcde\r\n--B--"
    )
    assert stream.bytes_read == 5


@pytest.mark.asyncio
async def test_progress_is_reported_before_chunk_is_forwarded() -> None:
    events: list[object] = []
    stream = MultipartRelatedStream(
        {},
        _chunks(b"xy", b"z"),
        media_content_type="application/octet-stream",
        boundary="B",
        on_progress=lambda event: events.append(event),
    )

    async for chunk in stream:
        events.append(chunk)

    first = events.index(UploadProgress(bytes_read=2))
    assert events[first + 1] == b"xy"
    second = events.index(UploadProgress(bytes_read=3))
    assert events[second + 1] == b"z"


@pytest.mark.asyncio
async def test_async_progress_callback_is_awaited() -> None:
    seen: list[int] = []

    async def on_progress(event: UploadProgress) -> None:
        seen.append(event.bytes_read)

    stream = MultipartRelatedStream(
        {}, _chunks(b"1234"), media_content_type="text/plain", on_progress=on_progress
    )
    await stream.read_all()

    assert seen == [4]


@pytest.mark.asyncio
async def test_file_like_media_is_read_in_chunks() -> None:
    progress: list[int] = []
    stream = MultipartRelatedStream(
        {"k": "v"},
        io.BytesIO(b"0123456789"),
        media_content_type="application/octet-stream",
        boundary="B",
        on_progress=lambda event: progress.append(event.bytes_read),
        chunk_size=4,
    )

    content = await stream.read_all()

    assert progress == [4, 8, 10]
    assert content.endswith(b"\r\n\r\n0123456789\r\n--B--")


@pytest.mark.asyncio
async def test_media_stream_error_propagates() -> None:
    async def failing() -> AsyncIterator[bytes]:
        yield b"partial"
        raise OSError("disk went away")

    stream = MultipartRelatedStream({}, failing(), media_content_type="text/plain", boundary="B")

    with pytest.raises(OSError, match="disk went away"):
        await stream.read_all()
    assert stream.state is AssemblyState.STREAMING_MEDIA_BODY


@pytest.mark.asyncio
async def test_multipart_stream_can_only_be_consumed_once() -> None:
    stream = MultipartRelatedStream({}, "x", media_content_type="text/plain")
    await stream.read_all()

    with pytest.raises(RuntimeError):
        await stream.read_all()


def test_default_boundary_is_random() -> None:
    first = MultipartRelatedStream({}, "x", media_content_type="text/plain")
    second = MultipartRelatedStream({}, "x", media_content_type="text/plain")

    assert first.boundary != second.boundary
    assert len(first.boundary) == 36
    assert first.content_type == f"multipart/related; boundary={first.boundary}"


@pytest.mark.asyncio
async def test_iter_media_chunks_sources() -> None:
    def sync_source():
        yield b"a"
        yield "b"

    assert [c async for c in iter_media_chunks(sync_source())] == [b"a", b"b"]
    assert [c async for c in iter_media_chunks(io.BytesIO(b"abc"), chunk_size=2)] == [b"ab", b"c"]
    assert [c async for c in iter_media_chunks(_chunks(b"x", b"", b"y"))] == [b"x", b"y"]
    assert [c async for c in iter_media_chunks(b"raw")] == [b"raw"]


def test_is_media_stream() -> None:
    assert is_media_stream(io.BytesIO(b""))
    assert is_media_stream(iter([b"x"]))
    assert not is_media_stream("text")
    assert not is_media_stream(b"bytes")
    assert not is_media_stream({"a": 1})
    assert not is_media_stream(None)


def test_normalize_media() -> None:
    assert normalize_media(None) == MediaSpec()
    assert normalize_media({"body": "x", "mimeType": "text/csv"}) == MediaSpec(body="x", mime_type="text/csv")
    assert normalize_media({"body": "x", "mime_type": "text/csv"}).mime_type == "text/csv"
    spec = MediaSpec(body=b"x")
    assert normalize_media(spec) is spec
    with pytest.raises(TypeError):
        normalize_media("not a media mapping")  # type: ignore[arg-type]


def test_media_spec_has_body() -> None:
    assert not MediaSpec(body="").has_body
    assert not MediaSpec(body=b"").has_body
    assert MediaSpec(body="x").has_body
    assert MediaSpec(body=io.BytesIO()).has_body


@pytest.mark.asyncio
async def test_blocking_sources_are_read_off_the_event_loop() -> None:
    loop_thread = threading.get_ident()
    read_threads: list[int] = []

    class _Reader:
        def __init__(self, data: bytes) -> None:
            self._buffer = io.BytesIO(data)

        def read(self, size: int) -> bytes:
            read_threads.append(threading.get_ident())
            return self._buffer.read(size)

    def sync_source():
        read_threads.append(threading.get_ident())
        yield b"chunk"

    from_reader = [c async for c in iter_media_chunks(_Reader(b"abc"), chunk_size=2)]
    from_iterable = [c async for c in iter_media_chunks(sync_source())]

    assert from_reader == [b"ab", b"c"]
    assert from_iterable == [b"chunk"]
    assert read_threads
    assert loop_thread not in read_threads


@pytest.mark.asyncio
async def test_async_read_sources_are_awaited() -> None:
    class _AsyncReader:
        def __init__(self) -> None:
            self._chunks = [b"12", b"3", b""]

        async def read(self, size: int) -> bytes:
            return self._chunks.pop(0)

    assert [c async for c in iter_media_chunks(_AsyncReader())] == [b"12", b"3"]
