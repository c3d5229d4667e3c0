import jwt
import logging
from dataclasses import dataclass
from typing import Optional, Dict, Any

from config import config

logger = logging.getLogger("crm_drive.auth.jwt")

@dataclass
class UserContext:
    id: str
    role: str
    email: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None

def verify_crm_jwt(token: str) -> Optional[UserContext]:
    """
    Verifies an HS256 bearer token issued by the CRM identity provider.

    Returns:
        UserContext with the user id ('sub') and role, or None if CRM_JWT_SECRET
        is not configured (callers then fall back to legacy header auth).

    Raises:
        jwt.ExpiredSignatureError: If the token has expired.
        jwt.InvalidTokenError: If the token is invalid (bad signature, missing sub...).
    """
    secret = config.CRM_JWT_SECRET
    if not secret:
        logger.warning("CRM_JWT_SECRET is not configured. JWT authentication is disabled.")
        return None

    try:
        payload = jwt.decode(
            token,
            secret,
            algorithms=["HS256"],
            options={"verify_aud": False}
        )
    except jwt.ExpiredSignatureError as e:
        logger.error(f"JWT Error: Token has expired. Details: {e}")
        raise
    except jwt.InvalidTokenError as e:
        logger.error(f"JWT Error: Invalid token. Details: {e}")
        raise

    user_id = payload.get("sub")
    if not user_id:
        raise jwt.InvalidTokenError("Token missing 'sub' claim")

    app_metadata = payload.get("app_metadata", {})
    user_metadata = payload.get("user_metadata", {})

    return UserContext(
        id=user_id,
        role=payload.get("role", "authenticated"),
        email=payload.get("email"),
        metadata={**app_metadata, **user_metadata}
    )
