"""Resolve an access token into the Actor passed to moderation and management."""

from typing import Optional

from src.models.actor import Actor, Role
from src.services.supabase_client import create_user_role, get_auth_user, get_user_role
from src.utils.errors import AuthenticationError
from src.utils.logging import get_structured_logger, mask_user_id

logger = get_structured_logger(__name__)


def parse_bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Extract the token from an ``Authorization: Bearer ...`` header value."""
    if not authorization:
        return None
    scheme, _, token = authorization.strip().partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


async def resolve_actor(access_token: Optional[str]) -> Actor:
    """Look up the token's user and role.

    A signed-in user without a role row is given the default user role,
    the way first sign-in works in the web client.
    """
    if not access_token:
        raise AuthenticationError("Missing access token")

    user = await get_auth_user(access_token)
    if user is None:
        raise AuthenticationError("Invalid or expired access token")

    user_id = str(user.id)
    role_name = await get_user_role(user_id)
    if role_name is None:
        await create_user_role(user_id, Role.USER.value)
        logger.info("Created default role for user", user_id=mask_user_id(user_id))
        role = Role.USER
    else:
        try:
            role = Role(role_name)
        except ValueError:
            logger.warning("Unknown role, treating as user", user_id=mask_user_id(user_id), role=role_name)
            role = Role.USER

    return Actor(user_id=user_id, role=role, email=getattr(user, "email", None))
