"""Data access for user accounts, backed by the configured Django user model.

Lookups raise the model's ``DoesNotExist`` when no user matches.
"""

from django.contrib.auth import get_user_model
from django.contrib.auth.base_user import AbstractBaseUser


def get_user_by_username(username: str) -> AbstractBaseUser:
    User = get_user_model()
    return User.objects.get(**{User.USERNAME_FIELD: username})


def get_user_by_email(email: str) -> AbstractBaseUser:
    User = get_user_model()
    return User.objects.get(**{User.get_email_field_name(): email})


def email_in_use(email: str) -> bool:
    User = get_user_model()
    return User.objects.filter(**{User.get_email_field_name(): email}).exists()


def insert_user(*, username: str, email: str, password: str) -> AbstractBaseUser:
    """Create a user; the password is stored with Django's password hashers."""
    return get_user_model().objects.create_user(
        username=username, email=email, password=password
    )
