"""Shared API dependencies for authentication and store access."""

import logging
from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from sqlalchemy.orm import Session

from townsquare.core.security import Actor, decode_access_token
from townsquare.db.session import get_db
from townsquare.services.store import EntityStore

logger = logging.getLogger(__name__)

# Reads are open to guests, so a missing header is not an error here.
bearer_scheme = HTTPBearer(auto_error=False)

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]


def get_store(db: SessionDep) -> EntityStore:
    """Wrap the request session in an ``EntityStore``."""
    return EntityStore(db)


def _credentials_error() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_actor(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> Actor:
    """Return the caller as an ``Actor``; requests without a token act as guests.

    Raises:
        HTTPException: If a token is present but invalid or expired.
    """
    if credentials is None:
        return Actor.guest()
    try:
        return decode_access_token(credentials.credentials)
    except JWTError as err:
        logger.debug("Rejected bearer token: %s", err)
        raise _credentials_error() from err


def get_current_actor(actor: Annotated[Actor, Depends(get_actor)]) -> Actor:
    """Require an authenticated caller."""
    if not actor.is_authenticated:
        raise _credentials_error()
    return actor


StoreDep = Annotated[EntityStore, Depends(get_store)]
ActorDep = Annotated[Actor, Depends(get_actor)]
CurrentActorDep = Annotated[Actor, Depends(get_current_actor)]
