from dataclasses import dataclass

from guarded_api.core.constants import SAFE_METHODS, WILDCARD_ORIGIN
from guarded_api.core.exceptions.pipeline import CSRFError, CSRFReason


@dataclass(frozen=True)
class CSRFPolicy:
    """
    Trusted origins for state-changing requests.

    With `strict_mode` off, requests carrying neither Origin nor Referer
    (curl, load generators, server-to-server calls) are let through.
    """

    allowed_origins: tuple[str, ...]
    strict_mode: bool = False

    def allows_origin(self, origin: str) -> bool:
        return any(allowed in (WILDCARD_ORIGIN, origin) for allowed in self.allowed_origins)

    def allows_referer(self, referer: str) -> bool:
        # Referer is a full URL, trusted origins are matched as prefixes
        return any(
            allowed == WILDCARD_ORIGIN or referer.startswith(allowed)
            for allowed in self.allowed_origins
        )


class CSRFGuard:
    """
    Origin/Referer based CSRF protection for state-changing requests.

    A request from a browser context must come from a trusted origin and
    carry the `X-Requested-With` marker header, which cross-site forms
    cannot set.

    Reference:
    https://cheatsheetseries.owasp.org/cheatsheets/Cross-Site_Request_Forgery_Prevention_Cheat_Sheet.html
    """

    def __init__(self, policy: CSRFPolicy):
        self.policy = policy

    def check(
        self,
        method: str,
        origin: str | None,
        referer: str | None,
        marker_present: bool,
    ) -> None:
        """
        Validate the provenance of a request

        Args:
            method: HTTP method
            origin: Value of the Origin header, if any
            referer: Value of the Referer header, if any
            marker_present: Whether the X-Requested-With header was sent

        Raises:
            CSRFError: When the request must be rejected
        """
        if method.upper() in SAFE_METHODS:
            return

        if not origin and not referer:
            if self.policy.strict_mode:
                raise CSRFError(CSRFReason.MISSING_ORIGIN_REFERER)
            return

        if origin:
            if not self.policy.allows_origin(origin):
                raise CSRFError(CSRFReason.DISALLOWED_ORIGIN)
        elif not self.policy.allows_referer(referer):
            raise CSRFError(CSRFReason.DISALLOWED_REFERER)

        if not marker_present:
            raise CSRFError(CSRFReason.MISSING_MARKER_HEADER)
