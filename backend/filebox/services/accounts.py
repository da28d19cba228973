"""Account actions — sign-up, sign-in, sign-out with user-facing messages."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from filebox.services import errors
from filebox.services.errors import AuthError, FileBoxError, ValidationError
from filebox.services.outcome import Outcome

if TYPE_CHECKING:
    from filebox.services.auth_session import FirebaseAuthSession

logger = logging.getLogger(__name__)

SIGN_UP_MESSAGES = {
    errors.EMAIL_IN_USE: "This email is already in use.",
    errors.INVALID_EMAIL: "The email address is invalid.",
    errors.WEAK_PASSWORD: "Password must be at least 6 characters.",
}
SIGN_UP_DEFAULT = "Could not create the account. Try again."

SIGN_IN_MESSAGES = {
    errors.INVALID_EMAIL: "Invalid email or password.",
    errors.USER_NOT_FOUND: "Invalid email or password.",
    errors.INVALID_CREDENTIALS: "Invalid email or password.",
    errors.TOO_MANY_REQUESTS: "Too many sign-in attempts. Try again later.",
    errors.USER_DISABLED: "This account has been disabled.",
}
SIGN_IN_DEFAULT = "Could not sign in. Check your email and password."


class AccountController:
    """Wraps the auth session so failures come back as outcomes."""

    def __init__(self, auth: FirebaseAuthSession):
        self._auth = auth

    async def sign_up(self, email: str, password: str, confirm_password: str) -> Outcome:
        if password != confirm_password:
            return Outcome.failure(
                "Passwords do not match.", ValidationError("Passwords do not match"),
            )
        try:
            await self._auth.sign_up(email.strip(), password)
        except AuthError as e:
            logger.warning("Sign-up failed: %s (%s)", e.code, e.detail)
            return Outcome.failure(SIGN_UP_MESSAGES.get(e.code, SIGN_UP_DEFAULT), e)
        except FileBoxError as e:
            logger.warning("Sign-up failed: %s", e)
            return Outcome.failure(SIGN_UP_DEFAULT, e)
        return Outcome.success("Account created.")

    async def sign_in(self, email: str, password: str) -> Outcome:
        try:
            await self._auth.sign_in(email.strip(), password)
        except AuthError as e:
            logger.warning("Sign-in failed: %s (%s)", e.code, e.detail)
            return Outcome.failure(SIGN_IN_MESSAGES.get(e.code, SIGN_IN_DEFAULT), e)
        except FileBoxError as e:
            logger.warning("Sign-in failed: %s", e)
            return Outcome.failure(SIGN_IN_DEFAULT, e)
        return Outcome.success("Signed in.")

    async def sign_out(self) -> Outcome:
        try:
            await self._auth.sign_out()
        except FileBoxError as e:
            logger.error("Sign-out failed: %s", e)
            return Outcome.failure("Could not sign out.", e)
        return Outcome.success("Signed out.")
