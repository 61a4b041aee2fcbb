# domain/errors.py
from typing import Optional


class PhotoforgeError(Exception):
    pass


class ConfigError(PhotoforgeError):
    """Bad or missing template/plugin fields, reported at load time."""

    def __init__(self, message: str, template: Optional[str] = None, plugin_index: Optional[int] = None):
        self.template = template
        self.plugin_index = plugin_index
        super().__init__(message)

    def __str__(self) -> str:
        where = []
        if self.template:
            where.append(f'template "{self.template}"')
        if self.plugin_index is not None:
            where.append(f"plugin #{self.plugin_index}")
        msg = super().__str__()
        return f"{', '.join(where)}: {msg}" if where else msg


class BindError(PhotoforgeError):
    pass


class FetchError(PhotoforgeError):
    """Upstream fetch failure.

    `status_code` is None for transport-level failures (timeout, connection
    refused, ...) and the upstream HTTP status otherwise.
    """

    def __init__(self, message: str, status_code: Optional[int] = None, body: bytes = b"", uri: str = ""):
        self.status_code = status_code
        self.body = body
        self.uri = uri
        super().__init__(message)


class NotFoundError(FetchError):
    pass


class UpstreamUnavailableError(FetchError):
    pass


class TransportError(FetchError):
    pass


def fetch_error_for_status(status_code: int, body: bytes = b"", uri: str = "") -> FetchError:
    if status_code == 404:
        return NotFoundError(f"error {status_code}", status_code, body, uri)
    return UpstreamUnavailableError(f"error {status_code}", status_code, body, uri)


class DrawError(PhotoforgeError):
    pass


class RenderError(PhotoforgeError):
    """Any failure of a single render, with the template it happened in."""

    def __init__(self, template: str, cause: Exception):
        self.template = template
        self.cause = cause
        super().__init__(f'render "{template}": {type(cause).__name__}: {cause}')

    @property
    def status_code(self) -> int:
        if isinstance(self.cause, NotFoundError):
            return 404
        if isinstance(self.cause, FetchError):
            return 503
        if isinstance(self.cause, (ConfigError, BindError)):
            return 400
        return 500
