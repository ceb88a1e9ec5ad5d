import logging

from django.contrib.auth import get_user_model
from django.contrib.auth.base_user import AbstractBaseUser
from django.db import IntegrityError, transaction

from .queries import email_in_use, get_user_by_email, get_user_by_username, insert_user

logger = logging.getLogger(__name__)


def user_exists(identifier: str) -> tuple[bool, AbstractBaseUser | None]:
    """Look a user up by username, then by email.

    Not finding a user is a normal result, ``(False, None)``; database errors
    propagate.
    """
    User = get_user_model()

    try:
        return True, get_user_by_username(identifier)
    except User.DoesNotExist:
        pass

    # Users can also log in with their email address
    try:
        return True, get_user_by_email(identifier)
    except User.DoesNotExist:
        return False, None


def register(
    username: str, email: str, password: str
) -> tuple[AbstractBaseUser | None, bool]:
    """Create an account. Returns ``(None, False)`` if the username or email
    is already taken."""
    if email_in_use(email):
        logger.info(f"Registration rejected, email {email} already in use")
        return None, False

    try:
        with transaction.atomic():
            user = insert_user(username=username, email=email, password=password)
    except IntegrityError as e:
        logger.info(f"Registration rejected for {username}: {e}")
        return None, False

    logger.info(f"Registered user {username}")
    return user, True
