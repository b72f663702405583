from importlib import metadata as _metadata

PACKAGE_NAME = "apirequest"

try:
    VERSION = _metadata.version(PACKAGE_NAME)
except _metadata.PackageNotFoundError:  # pragma: no cover - local/checkout usage
    VERSION = "0.0.0"

ALIAS_MARKER = "_"

APPLICATION_JSON = "application/json"
TEXT_PLAIN = "text/plain"
OCTET_STREAM = "application/octet-stream"

DEFAULT_CHUNK_SIZE = 64 * 1024
