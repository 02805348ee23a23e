from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any, Callable

from jose import JWTError, jwt
from jose.exceptions import JWTClaimsError
from loguru import logger

from guarded_api.core.config import Settings
from guarded_api.core.constants import TokenLifetime
from guarded_api.core.exceptions.pipeline import AuthenticationError, AuthenticationReason
from guarded_api.services.credentials import CredentialVerifier, Subject

DEFAULT_SIGNING_SECRET = "insecure-default-secret-CHANGE-IN-PRODUCTION"

BEARER_SCHEME = "Bearer"

# Expiry is checked before decoding; registered claims we do not issue are ignored
DECODE_OPTIONS = {
    "verify_exp": False,
    "verify_iat": False,
    "verify_aud": False,
    "verify_iss": False,
    "verify_sub": False,
    "verify_jti": False,
}

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True)
class SigningSecret:
    """
    Key material for signing tokens.

    `insecure_default` is True when no secret was configured and the
    well-known default is in use; tokens signed with it can be forged by anyone.
    """

    value: bytes
    insecure_default: bool = False

    @classmethod
    def from_settings(cls, app_settings: Settings) -> "SigningSecret":
        if app_settings.jwt_secret is None or not app_settings.jwt_secret.get_secret_value():
            logger.warning(
                "JWT_SECRET is not set, signing tokens with the built-in default secret. "
                "Set JWT_SECRET before exposing this service."
            )
            return cls(value=DEFAULT_SIGNING_SECRET.encode(), insecure_default=True)

        return cls(value=app_settings.jwt_secret.get_secret_value().encode())

    def __repr__(self) -> str:
        return f"SigningSecret(value=**********, insecure_default={self.insecure_default})"


@dataclass(frozen=True)
class TokenClaims:
    """Verified content of an identity token."""

    user_id: int
    email: str
    issued_at: datetime
    expires_at: datetime

    @property
    def subject(self) -> Subject:
        return Subject(user_id=self.user_id, email=self.email)


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str
    expires_in: int = TokenLifetime.ACCESS_SECONDS


def _timestamp(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f"expected a numeric date, got {type(value).__name__}")
    return int(value)


class TokenAuthenticator:
    """
    Issues and verifies HMAC-signed JWT identity tokens.

    Access and refresh tokens carry the same claims and differ only in
    lifetime, so either one is accepted by `verify` and `refresh`. There is
    no revocation: a token stays valid until it expires.

    Example:
        ```python
        authenticator = TokenAuthenticator(SigningSecret.from_settings(settings), verifier)

        pair = authenticator.login("alice@example.com", "password")
        claims = authenticator.verify(pair.access_token)
        ```
    """

    def __init__(
        self,
        secret: SigningSecret,
        credential_verifier: CredentialVerifier,
        algorithm: str = "HS256",
        access_lifetime: timedelta = TokenLifetime.ACCESS,
        refresh_lifetime: timedelta = TokenLifetime.REFRESH,
        clock: Clock = utc_now,
    ):
        self.secret = secret
        self.credential_verifier = credential_verifier
        self.algorithm = algorithm
        self.access_lifetime = access_lifetime
        self.refresh_lifetime = refresh_lifetime
        self._clock = clock

    def _encode(self, subject: Subject, issued_at: datetime, lifetime: timedelta) -> str:
        to_encode = {
            "sub": str(subject.user_id),
            "user_id": subject.user_id,
            "email": subject.email,
            "iat": int(issued_at.timestamp()),
            "exp": int((issued_at + lifetime).timestamp()),
        }
        return jwt.encode(to_encode, self.secret.value, algorithm=self.algorithm)

    def issue_pair(self, user_id: int, email: str) -> TokenPair:
        """
        Create an access token and a refresh token for the same subject

        Args:
            user_id: Id of the authenticated user
            email: Email of the authenticated user

        Returns:
            TokenPair with `expires_in` set to the access token lifetime in seconds
        """
        subject = Subject(user_id=user_id, email=email)
        issued_at = self._clock()

        return TokenPair(
            access_token=self._encode(subject, issued_at, self.access_lifetime),
            refresh_token=self._encode(subject, issued_at, self.refresh_lifetime),
            expires_in=int(self.access_lifetime.total_seconds()),
        )

    def verify(self, token: str) -> TokenClaims:
        """
        Verify a token and return its claims.

        Expiry is checked before the signature, so an expired token is always
        reported as expired.

        Args:
            token: Encoded JWT

        Returns:
            TokenClaims: Claims of a valid token

        Raises:
            AuthenticationError: MALFORMED, EXPIRED or INVALID_SIGNATURE
        """
        try:
            payload = jwt.get_unverified_claims(token)
        except JWTError as e:
            raise AuthenticationError(AuthenticationReason.MALFORMED, exception=e) from e

        try:
            user_id = payload["user_id"]
            email = payload["email"]
            if isinstance(user_id, bool) or not isinstance(user_id, int):
                raise TypeError("user_id must be an integer")
            if not isinstance(email, str):
                raise TypeError("email must be a string")

            claims = TokenClaims(
                user_id=user_id,
                email=email,
                issued_at=datetime.fromtimestamp(_timestamp(payload["iat"]), UTC),
                expires_at=datetime.fromtimestamp(_timestamp(payload["exp"]), UTC),
            )
        except (KeyError, TypeError, ValueError, OverflowError, OSError) as e:
            raise AuthenticationError(AuthenticationReason.MALFORMED, exception=e) from e

        if self._clock() >= claims.expires_at:
            raise AuthenticationError(AuthenticationReason.EXPIRED)

        try:
            jwt.decode(
                token,
                self.secret.value,
                algorithms=[self.algorithm],
                options=DECODE_OPTIONS,
            )
        except JWTClaimsError as e:
            raise AuthenticationError(AuthenticationReason.MALFORMED, exception=e) from e
        except JWTError as e:
            raise AuthenticationError(AuthenticationReason.INVALID_SIGNATURE, exception=e) from e

        return claims

    def refresh(self, token: str) -> TokenPair:
        """Verify `token` and issue a fresh pair for its subject."""
        claims = self.verify(token)
        return self.issue_pair(claims.user_id, claims.email)

    def login(self, email: str, password: str) -> TokenPair:
        """
        Exchange credentials for a token pair

        Raises:
            AuthenticationError: INVALID_CREDENTIALS when the verifier rejects them
        """
        subject = self.credential_verifier.verify(email, password)
        if subject is None:
            raise AuthenticationError(AuthenticationReason.INVALID_CREDENTIALS)

        return self.issue_pair(subject.user_id, subject.email)

    def authenticate_header(self, authorization: str | None) -> TokenClaims:
        """
        Verify the token carried by an `Authorization: Bearer <token>` header value

        Raises:
            AuthenticationError: MISSING_HEADER, MALFORMED_HEADER or any `verify` reason
        """
        if not authorization:
            raise AuthenticationError(AuthenticationReason.MISSING_HEADER)

        parts = authorization.split(" ")
        if len(parts) != 2 or parts[0] != BEARER_SCHEME or not parts[1]:
            raise AuthenticationError(AuthenticationReason.MALFORMED_HEADER)

        return self.verify(parts[1])
