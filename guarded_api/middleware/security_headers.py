from fastapi import Request, Response

from guarded_api.core.config import Environment
from guarded_api.middleware.chain import CallNext, Stage

SECURE_ENVIRONMENTS = {Environment.STG, Environment.PRD}


class SecurityHeadersStage(Stage):
    """
    Adds security headers to all responses.

    Implements OWASP recommended security headers:
        - X-XSS-Protection: Enables browser XSS filtering (legacy)
        - X-Frame-Options: Prevents clickjacking attacks
        - X-Content-Type-Options: Prevents MIME-type sniffing
        - Referrer-Policy: Controls referrer information
        - Content-Security-Policy: Controls resource loading
        - Cache-Control / Pragma: Keeps API responses out of shared caches
        - Permissions-Policy: Controls browser features
        - Strict-Transport-Security: Enforces HTTPS (stg/prd only)

    Reference: https://cheatsheetseries.owasp.org/cheatsheets/HTTP_Headers_Cheat_Sheet.html
    """

    def __init__(self, environment: Environment):
        self.environment = environment

    def __repr__(self) -> str:
        return f"SecurityHeadersStage(environment={self.environment.value!r})"

    async def dispatch(self, request: Request, call_next: CallNext) -> Response:
        response = await call_next(request)

        # Legacy XSS protection (for older browsers)
        response.headers["X-XSS-Protection"] = "1; mode=block"

        # Prevent clickjacking - deny all framing
        response.headers["X-Frame-Options"] = "DENY"

        # Prevent MIME-type sniffing
        response.headers["X-Content-Type-Options"] = "nosniff"

        # Control referrer information leakage
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"

        response.headers["Content-Security-Policy"] = "default-src 'self'; frame-ancestors 'none'"

        response.headers["Cache-Control"] = "no-store, no-cache, must-revalidate, private"
        response.headers["Pragma"] = "no-cache"

        # Disable unnecessary browser features
        response.headers["Permissions-Policy"] = "geolocation=(), microphone=(), camera=()"

        # HSTS - Only in environments served over HTTPS
        if self.environment in SECURE_ENVIRONMENTS:
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"

        return response
