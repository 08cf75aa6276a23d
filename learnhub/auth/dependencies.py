"""FastAPI dependencies for authentication and role checks."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from jose import JWTError
from pydantic import ValidationError

from learnhub.auth.permissions import UserRole, has_permission
from learnhub.auth.schemas import UserResponse
from learnhub.auth.security import decode_access_token
from learnhub.core.context import set_user_id, set_user_role


def get_token_from_header(request: Request) -> str | None:
    """Extract the Bearer token from the Authorization header."""
    auth_header = request.headers.get("Authorization")
    if not auth_header:
        return None

    expected_parts = 2
    parts = auth_header.split()
    if len(parts) != expected_parts or parts[0].lower() != "bearer":
        return None

    return parts[1]


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    token: Annotated[str | None, Depends(get_token_from_header)],
) -> UserResponse:
    """Authenticate the caller from the access token.

    Raises:
        HTTPException(401): If the token is missing, invalid or expired
    """
    if not token:
        raise _unauthorized("Access token not provided")

    try:
        payload = decode_access_token(token)
        user = UserResponse(
            id=payload["sub"],
            email=payload.get("email", ""),
            role=payload["role"],
        )
    except (JWTError, ValidationError) as e:
        raise _unauthorized("Invalid or expired token") from e

    set_user_id(user.id)
    set_user_role(user.role)
    return user


def require_role(*allowed_roles: UserRole):
    """Dependency requiring one of the given roles (exact match)."""

    async def role_checker(
        user: Annotated[UserResponse, Depends(get_current_user)],
    ) -> UserResponse:
        if UserRole(user.role) not in allowed_roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions",
            )
        return user

    return role_checker


def require_permission(required_role: UserRole):
    """Dependency requiring at least a permission level.

    Hierarchical: ADMIN >= INSTRUCTOR >= STUDENT.
    """

    async def permission_checker(
        user: Annotated[UserResponse, Depends(get_current_user)],
    ) -> UserResponse:
        if not has_permission(user.role, required_role):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions",
            )
        return user

    return permission_checker


# ==============================================================================
# Type Aliases
# ==============================================================================

CurrentUser = Annotated[UserResponse, Depends(get_current_user)]

AdminUser = Annotated[UserResponse, Depends(require_role(UserRole.ADMIN))]
InstructorUser = Annotated[
    UserResponse, Depends(require_permission(UserRole.INSTRUCTOR))
]
# Learner endpoints act on the caller's own records, so only students qualify
StudentUser = Annotated[UserResponse, Depends(require_role(UserRole.STUDENT))]
