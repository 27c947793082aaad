from typing import Annotated

from fastapi import Depends, Header

from src.container import ServiceContainer, get_container
from src.core.exceptions import AuthenticationError, AuthorizationError
from src.integrations.identity.schemas import UserProfile, UserRole


async def get_current_user(
    x_user_id: Annotated[int | None, Header()] = None,
    container: ServiceContainer = Depends(get_container),
) -> UserProfile:
    """
    Dependency resolving the caller from the X-User-Id header.

    Authentication happens upstream (gateway / identity service); this layer
    only trusts the forwarded user id and looks the user up.

    Usage:
        @router.get("/mine")
        async def mine(user: UserProfile = Depends(get_current_user)):
            return user
    """
    if x_user_id is None:
        raise AuthenticationError("X-User-Id header required")

    user = await container.identity.get_user(x_user_id)
    if not user:
        raise AuthenticationError("User not found")

    return user


def require_roles(*roles: UserRole):
    """
    Dependency factory to require specific roles.

    Usage:
        @router.post("/{reservation_id}/complete")
        async def complete(user: UserProfile = Depends(require_roles(UserRole.ADMIN))):
            ...
    """

    async def role_checker(
        current_user: UserProfile = Depends(get_current_user),
    ) -> UserProfile:
        if current_user.role not in roles:
            allowed = ", ".join(r.value for r in roles)
            raise AuthorizationError(f"Required role: {allowed}")
        return current_user

    return role_checker


# Convenience dependencies
CurrentUser = Annotated[UserProfile, Depends(get_current_user)]
AdminUser = Annotated[UserProfile, Depends(require_roles(UserRole.ADMIN))]
