from fastapi import Request, Response
from starlette import status

from guarded_api.core.constants import WILDCARD_ORIGIN, Headers
from guarded_api.middleware.chain import CallNext, Stage


class CORSStage(Stage):
    """
    Emits CORS headers and answers preflight requests.

    An allow-listed Origin is echoed back. Requests without an Origin
    (same-origin, curl) get `*`. Any OPTIONS request is answered with 200
    without reaching the router.
    """

    def __init__(
        self,
        allowed_origins: list[str],
        allowed_methods: list[str],
        allowed_headers: list[str],
    ):
        self.allowed_origins = tuple(allowed_origins)
        self.allowed_methods = ", ".join(allowed_methods)
        self.allowed_headers = ", ".join(allowed_headers)

    def __repr__(self) -> str:
        return f"CORSStage(allowed_origins={self.allowed_origins!r})"

    def is_allowed_origin(self, origin: str) -> bool:
        return any(allowed in (WILDCARD_ORIGIN, origin) for allowed in self.allowed_origins)

    def cors_headers(self, origin: str | None) -> dict[str, str]:
        headers = {
            "Access-Control-Allow-Methods": self.allowed_methods,
            "Access-Control-Allow-Headers": self.allowed_headers,
        }

        if not origin:
            headers["Access-Control-Allow-Origin"] = WILDCARD_ORIGIN
        elif self.is_allowed_origin(origin):
            headers["Access-Control-Allow-Origin"] = origin
            headers["Vary"] = Headers.ORIGIN

        return headers

    async def dispatch(self, request: Request, call_next: CallNext) -> Response:
        headers = self.cors_headers(request.headers.get(Headers.ORIGIN))

        # Preflight
        if request.method == "OPTIONS":
            return Response(status_code=status.HTTP_200_OK, headers=headers)

        response = await call_next(request)
        response.headers.update(headers)

        return response
