"""
Login check for the clinic frontend.

A single configured username/password pair gates the UI. Comparisons are
constant-time.
"""
import logging
import secrets

logger = logging.getLogger(__name__)


class AuthService:
    """Validates credentials against the configured login pair."""

    def __init__(self, username: str, password: str):
        self._username = username
        self._password = password

    def authenticate(self, username: str, password: str) -> bool:
        """
        Return True when both username and password match.

        Both comparisons always run so timing does not reveal which one failed.
        """
        user_ok = secrets.compare_digest(username.encode("utf-8"), self._username.encode("utf-8"))
        password_ok = secrets.compare_digest(password.encode("utf-8"), self._password.encode("utf-8"))
        if user_ok and password_ok:
            logger.info("Login succeeded", extra={"username": username})
            return True
        logger.warning("Login rejected", extra={"username": username})
        return False
