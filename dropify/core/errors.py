# dropify/core/errors.py


class UpstreamError(Exception):
    """An external HTTP call failed or answered with a non-success status."""

    def __init__(self, message: str, status: int | None = None, body: str | None = None):
        super().__init__(message)
        self.status = status
        self.body = body
