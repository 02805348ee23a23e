from datetime import timedelta


class TokenLifetime:
    """
    Lifetimes of the two tokens issued on every login or refresh.

    Example:
        ```python
        expires_at = issued_at + TokenLifetime.ACCESS
        ```
    """

    ACCESS = timedelta(minutes=15)
    REFRESH = timedelta(hours=24)

    # Reported to clients as `expires_in`
    ACCESS_SECONDS = int(ACCESS.total_seconds())


class Headers:
    AUTHORIZATION = "Authorization"
    ORIGIN = "Origin"
    REFERER = "Referer"
    # Set by scripted clients (XMLHttpRequest/fetch wrappers), never by plain form posts
    REQUESTED_WITH = "X-Requested-With"
    REQUEST_ID = "X-Request-ID"
    RETRY_AFTER = "Retry-After"


class FieldSizes:
    NAME_MIN = 1
    NAME_MAX = 100
    EMAIL = 254


# Read-only verbs, never subject to CSRF checks
SAFE_METHODS = frozenset({"GET", "HEAD", "OPTIONS"})

# Matches any origin in an allow-list
WILDCARD_ORIGIN = "*"
