from .user import SEED_USERS, UserStore

__all__ = ["SEED_USERS", "UserStore"]
