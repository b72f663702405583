"""
Common typing helpers shared by modules to avoid circular imports.
"""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from .options import FinalOptions


@dataclass(frozen=True, slots=True)
class UploadProgress:
    """Cumulative number of media bytes read so far."""

    bytes_read: int


ProgressCallback = Callable[[UploadProgress], None] | Callable[[UploadProgress], Awaitable[None]]


class RequestExecutor(Protocol):
    def request(self, options: "FinalOptions") -> Any:
        ...
