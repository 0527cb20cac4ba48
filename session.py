"""Login/logout against the store's session slot.

Roles are picked from a placeholder selector; there are no credentials.
"""

import logging
from typing import Optional, Union

from catalog import MOCK_ADMIN, MOCK_USER
from errors import ValidationError
from gateway import StoreGateway
from schemas import User, UserRole

logger = logging.getLogger(__name__)


def login(store: StoreGateway, role: Union[UserRole, str], email: Optional[str] = None) -> User:
    try:
        role = UserRole(role)
    except ValueError:
        raise ValidationError(f"Unknown role: {role!r}")
    if role == UserRole.GUEST:
        raise ValidationError("Guests browse without logging in")
    user = MOCK_ADMIN if role == UserRole.ADMIN else MOCK_USER
    if email:
        user = user.model_copy(update={"email": email})
    store.set_session(user)
    logger.info("Session opened for %s (%s)", user.id, role.value)
    return user


def logout(store: StoreGateway) -> None:
    store.set_session(None)
    logger.info("Session closed")


def current_user(store: StoreGateway) -> Optional[User]:
    return store.get_session()


def is_admin(user: Optional[User]) -> bool:
    return user is not None and user.role == UserRole.ADMIN
