from dataclasses import dataclass

from fastapi import Request

from guarded_api.services.token_authenticator import TokenClaims


@dataclass(frozen=True)
class Authenticated:
    claims: TokenClaims


@dataclass(frozen=True)
class Anonymous:
    pass


Identity = Authenticated | Anonymous

ANONYMOUS = Anonymous()


def get_request_identity(request: Request) -> Identity:
    """Identity attached by the token stage, `Anonymous` when none ran."""
    return getattr(request.state, "identity", ANONYMOUS)
