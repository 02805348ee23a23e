TEST_ORIGIN = "http://localhost:3000"
TEST_PASSWORD = "password"
ALICE_EMAIL = "alice@example.com"


def bearer(token: str) -> dict[str, str]:
    """Authorization header for a bearer token"""
    return {"Authorization": f"Bearer {token}"}
