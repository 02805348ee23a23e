from fastapi import Request, Response

from guarded_api.core.exceptions.pipeline import BodyTooLargeError
from guarded_api.core.security_events import SecurityEvent, log_security_event
from guarded_api.middleware.chain import CallNext, Stage


class BodySizeGuardStage(Stage):
    """
    Rejects request bodies above `limit` bytes with 413.

    A declared Content-Length above the limit is rejected without reading.
    Otherwise the body is streamed and the read stops at the first chunk
    that takes it past the limit, so at most one chunk beyond `limit` is
    held in memory. An accepted body is cached on the request for the
    endpoint to parse.
    """

    def __init__(self, limit: int):
        self.limit = limit

    def __repr__(self) -> str:
        return f"BodySizeGuardStage(limit={self.limit})"

    def _reject(self, request: Request, size: int) -> Response:
        log_security_event(
            SecurityEvent.BODY_TOO_LARGE, request, f"body of {size}+ bytes, limit {self.limit}"
        )
        return BodyTooLargeError(self.limit).to_response()

    async def dispatch(self, request: Request, call_next: CallNext) -> Response:
        content_length = request.headers.get("content-length")
        if content_length and content_length.isdigit() and int(content_length) > self.limit:
            return self._reject(request, int(content_length))

        received = 0
        chunks: list[bytes] = []
        async for chunk in request.stream():
            received += len(chunk)
            if received > self.limit:
                return self._reject(request, received)
            chunks.append(chunk)

        # Starlette serves `request.body()` from this cache once the stream is consumed
        request._body = b"".join(chunks)

        return await call_next(request)
