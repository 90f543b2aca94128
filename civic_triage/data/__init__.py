from .seed import DEMO_ROLE_USERS, demo_users

__all__ = ["DEMO_ROLE_USERS", "demo_users"]
