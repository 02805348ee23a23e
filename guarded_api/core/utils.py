from fastapi import Request


def get_client_ip(request: Request) -> str:
    """
    Get client IP address from request headers or remote address

    Precedence: first hop of X-Forwarded-For, then X-Real-IP,
    then the address of the connected peer.

    Args:
        request: FastAPI request object

    Returns:
        Client IP address as a string
    """
    forwarded_for = request.headers.get("X-Forwarded-For", "")
    if forwarded_for.strip():
        return forwarded_for.split(",")[0].strip()

    real_ip = request.headers.get("X-Real-IP", "")
    if real_ip.strip():
        return real_ip.strip()

    return request.client.host if request.client else "unknown"
