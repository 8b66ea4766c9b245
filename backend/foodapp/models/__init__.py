from foodapp.models.user import User

__all__ = ["User"]
