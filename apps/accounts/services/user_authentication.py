"""Operator authentication service."""

import logging

from django.contrib.auth import get_user_model
from django.utils import timezone

from .exceptions import InvalidCredentialsError, InactiveAccountError

User = get_user_model()

logger = logging.getLogger(__name__)


def authenticate_user(*, email: str, password: str) -> User:
    """
    Authenticate an operator at a scanning station.

    Email matching ignores case and surrounding whitespace, since station
    logins are often typed on shared keyboards. Accounts without the ADMIN
    role can still sign in; scanner endpoints check the role themselves.

    Raises:
        InvalidCredentialsError: If the email is unknown or the password is wrong
        InactiveAccountError: If the account has been deactivated
    """
    normalized = (email or '').strip()
    user = User.objects.filter(email__iexact=normalized).first() if normalized else None

    if user is None or not user.check_password(password):
        logger.info("Failed operator login for %s", normalized or '<blank>')
        raise InvalidCredentialsError("Invalid email or password")

    if not user.is_active:
        logger.warning("Deactivated operator %s attempted to log in", user.email)
        raise InactiveAccountError("Account is deactivated")

    # Single-column update; the row does not need a lock
    user.last_login = timezone.now()
    User.objects.filter(pk=user.pk).update(last_login=user.last_login)

    if not user.is_scanner_operator:
        logger.info("Operator %s logged in without scanner access", user.email)

    return user
