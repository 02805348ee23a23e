import threading
from dataclasses import replace

from guarded_api.models.user import User, utc_now

SEED_USERS = (
    ("Alice", "alice@example.com"),
    ("Bob", "bob@example.com"),
    ("Charlie", "charlie@example.com"),
)


class UserStore:
    """
    In-memory user repository.

    Ids are assigned monotonically starting at 1 and never reused, even after
    a delete. Returned users are copies, so callers never mutate stored state.

    One `threading.Lock` serializes every operation, reads included; there is
    no read/write lock, so concurrent readers wait on each other.
    """

    def __init__(self, seed: tuple[tuple[str, str], ...] = SEED_USERS):
        self._users: dict[int, User] = {}
        self._next_id = 1
        self._lock = threading.Lock()

        for name, email in seed:
            self.create_one(name, email)

    def get_all(self) -> list[User]:
        """
        Get all users ordered by id

        Returns:
            list[User]: Snapshot of the stored users.
        """
        with self._lock:
            return [replace(user) for _, user in sorted(self._users.items())]

    def get_by_id(self, user_id: int) -> User | None:
        with self._lock:
            user = self._users.get(user_id)
            return replace(user) if user else None

    def get_by_email(self, email: str) -> User | None:
        """
        Get a user by email

        Args:
            email (str): The email of the user.

        Returns:
            User | None: The user object if found, else None.
        """
        with self._lock:
            for user in self._users.values():
                if user.email == email:
                    return replace(user)

        return None

    def create_one(self, name: str, email: str) -> User:
        with self._lock:
            now = utc_now()
            user = User(id=self._next_id, name=name, email=email, created_at=now, updated_at=now)
            self._users[user.id] = user
            self._next_id += 1

            return replace(user)

    def update_by_id(self, user_id: int, name: str, email: str) -> User | None:
        """
        Replace name and email of an existing user

        Args:
            user_id (int): Id of the user to update.
            name (str): New name.
            email (str): New email.

        Returns:
            User | None: The updated user, or None when the id is unknown.
        """
        with self._lock:
            user = self._users.get(user_id)
            if user is None:
                return None

            user.name = name
            user.email = email
            user.updated_at = utc_now()

            return replace(user)

    def delete_by_id(self, user_id: int) -> bool:
        with self._lock:
            return self._users.pop(user_id, None) is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._users)
