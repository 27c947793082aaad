from src.core.auth.dependencies import AdminUser, CurrentUser, get_current_user, require_roles

__all__ = [
    "AdminUser",
    "CurrentUser",
    "get_current_user",
    "require_roles",
]
