from fastapi import Header, HTTPException, Depends
from typing import Optional, List, Callable
from auth.jwt import verify_crm_jwt, UserContext
import jwt
import logging

logger = logging.getLogger("crm_drive.auth")

# Role hierarchy: higher value = more privileges
ROLE_HIERARCHY = {
    "admin": 100,
    "system_admin": 100,
    "manager": 75,
    "authenticated": 25,
}

async def get_current_user(
    authorization: Optional[str] = Header(None),
    x_user_id: Optional[str] = Header(None, alias="x-user-id"),
    x_user_role: Optional[str] = Header(None, alias="x-user-role")
) -> UserContext:
    """
    Dependency to get the current user.
    Prioritizes 'Authorization: Bearer <token>'.
    Falls back to 'x-user-id' and 'x-user-role' headers set by the CRM gateway.
    """

    # 1. Try JWT Authentication
    if authorization:
        scheme, _, token = authorization.partition(" ")
        if scheme.lower() == "bearer" and token:
            try:
                user_context = verify_crm_jwt(token)
                if user_context is not None:
                    return user_context
                logger.warning("JWT token provided but CRM_JWT_SECRET not configured, falling back to header authentication")
            except jwt.ExpiredSignatureError:
                raise HTTPException(status_code=401, detail="Token has expired")
            except jwt.InvalidTokenError as e:
                raise HTTPException(status_code=401, detail=f"Invalid token: {str(e)}")

    # 2. Fallback to gateway headers
    if x_user_id:
        return UserContext(
            id=x_user_id,
            role=x_user_role or "authenticated"
        )

    # 3. No credentials provided
    raise HTTPException(
        status_code=401,
        detail="Not authenticated. Missing Authorization header or x-user-id header."
    )


async def get_current_user_optional(
    authorization: Optional[str] = Header(None),
    x_user_id: Optional[str] = Header(None, alias="x-user-id"),
    x_user_role: Optional[str] = Header(None, alias="x-user-role")
) -> Optional[UserContext]:
    """
    Best-effort variant of get_current_user.
    Returns None when no credentials are provided, otherwise enforces the same validation.
    """
    if not authorization and not x_user_id:
        return None

    return await get_current_user(
        authorization=authorization,
        x_user_id=x_user_id,
        x_user_role=x_user_role,
    )


def _check_role_access(user_role: str, required_roles: List[str]) -> bool:
    """
    True if user_role is one of required_roles or ranks at least as high as
    one of them in ROLE_HIERARCHY. An empty required_roles allows anyone.
    """
    if not required_roles:
        return True

    user_role_lower = user_role.lower() if user_role else ""
    user_level = ROLE_HIERARCHY.get(user_role_lower, 0)

    for required_role in required_roles:
        required_role_lower = required_role.lower()
        if user_role_lower == required_role_lower:
            return True

        required_level = ROLE_HIERARCHY.get(required_role_lower, 0)
        if user_level >= required_level and user_level > 0:
            return True

    return False


def get_current_user_with_role(required_roles: List[str]) -> Callable:
    """
    Factory for a dependency that returns the current user if their role
    satisfies required_roles, and raises 403 otherwise.

    Usage:
        @router.post("/api/upload-jobs/{job_id}/retry")
        def retry(current_user: UserContext = Depends(get_current_user_with_role(["admin"]))):
            ...
    """
    async def _get_user_with_role_check(
        current_user: UserContext = Depends(get_current_user)
    ) -> UserContext:
        if not _check_role_access(current_user.role, required_roles):
            logger.warning(
                f"Access denied: user {current_user.id} with role '{current_user.role}' "
                f"attempted to access endpoint requiring one of {required_roles}"
            )
            raise HTTPException(
                status_code=403,
                detail=f"Access denied. Required role(s): {', '.join(required_roles)}. "
                       f"Your role: {current_user.role}"
            )
        return current_user

    return _get_user_with_role_check


async def require_admin(
    current_user: UserContext = Depends(get_current_user_with_role(["admin", "system_admin"]))
) -> UserContext:
    return current_user


async def require_manager_or_above(
    current_user: UserContext = Depends(get_current_user_with_role(["admin", "system_admin", "manager"]))
) -> UserContext:
    return current_user
