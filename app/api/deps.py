"""
API Dependencies

Reusable dependencies for API routes: the authenticated user and the
payment gateway.
"""

import logging
from typing import Annotated, Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db, insert_if_absent
from app.core.exceptions import Conflict, Unauthorized
from app.core.security import decode_access_token
from app.models.user import User
from app.services.payment_service import XenditGateway


logger = logging.getLogger(__name__)


# Bearer token issued by the identity provider
bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(bearer_scheme)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> User:
    """
    Dependency to get the current authenticated user.

    This dependency:
    1. Extracts the JWT from the Authorization header
    2. Decodes and validates it
    3. Loads the user, provisioning a row on first sight from the
       token's email and name claims

    Raises:
        Unauthorized: If the token is missing or invalid.
        Conflict: If a new subject's email belongs to another user.
    """
    if credentials is None:
        raise Unauthorized("Not authenticated")

    payload = decode_access_token(credentials.credentials)
    if payload is None:
        raise Unauthorized("Could not validate credentials")

    user_id: Optional[str] = payload.get("sub")
    if not user_id:
        raise Unauthorized("Could not validate credentials")

    user = await db.get(User, user_id)
    if user is not None:
        return user

    email = payload.get("email")
    if not email:
        raise Unauthorized("Token carries no email for an unknown user")

    try:
        created = await insert_if_absent(
            db,
            User,
            {
                "id": user_id,
                "email": email,
                "name": payload.get("name") or email.split("@")[0],
                "image": payload.get("picture"),
            },
            ("id",),
        )
        await db.commit()
    except IntegrityError:
        # Email is unique; another account already owns it
        await db.rollback()
        logger.warning("Cannot provision user %s: email already in use", user_id)
        raise Conflict("Email is already linked to another account")
    if created:
        logger.info("Provisioned user %s", user_id)

    user = await db.get(User, user_id)
    if user is None:
        raise Unauthorized("Could not validate credentials")
    return user


def get_payment_gateway() -> XenditGateway:
    """Dependency returning the configured payment gateway adapter."""
    return XenditGateway()


CurrentUser = Annotated[User, Depends(get_current_user)]
DbSession = Annotated[AsyncSession, Depends(get_db)]
Gateway = Annotated[XenditGateway, Depends(get_payment_gateway)]
