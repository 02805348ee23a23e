from guarded_api.repos.user import UserStore
from guarded_api.services.credentials import (
    StoreCredentialVerifier,
    Subject,
    get_password_hash,
    password_hash,
)


class TestStoreCredentialVerifier:
    """Tests for credential checks against the user store."""

    def test_seeded_user_with_configured_password(self):
        verifier = StoreCredentialVerifier(UserStore(), "password")

        assert verifier.verify("alice@example.com", "password") == Subject(
            user_id=1, email="alice@example.com"
        )

    def test_wrong_password(self):
        verifier = StoreCredentialVerifier(UserStore(), "password")

        assert verifier.verify("alice@example.com", "Password") is None

    def test_unknown_email(self):
        verifier = StoreCredentialVerifier(UserStore(), "password")

        assert verifier.verify("mallory@example.com", "password") is None

    def test_created_user_can_log_in(self, faker):
        store = UserStore()
        email = faker.safe_email()
        user = store.create_one(faker.name(), email)
        verifier = StoreCredentialVerifier(store, "s3cret")

        assert verifier.verify(email, "s3cret") == Subject(user_id=user.id, email=email)

    def test_deleted_user_cannot_log_in(self):
        store = UserStore()
        verifier = StoreCredentialVerifier(store, "password")
        store.delete_by_id(2)

        assert verifier.verify("bob@example.com", "password") is None

    def test_plain_password_is_not_kept(self):
        verifier = StoreCredentialVerifier(UserStore(), "password")

        assert "password" not in vars(verifier).values()


class TestPasswordHash:
    def test_hash_verifies(self):
        hashed = get_password_hash("password")

        assert hashed != "password"
        assert password_hash.verify("password", hashed)
