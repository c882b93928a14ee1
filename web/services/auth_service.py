"""
Password login and signed session tokens.

Tokens are itsdangerous URL-safe timed signatures over a small payload
(user id, email, role). They travel in the `auth_token` cookie or an
`Authorization: Bearer` header.
"""
import logging
from typing import Any, Dict, Optional

from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer
from passlib.context import CryptContext
from starlette.requests import Request

from core.exceptions import AuthenticationError
from core.models import User
from core.repositories import UserRepository

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid email or password"

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: Optional[str]) -> bool:
    if not password_hash:
        return False
    try:
        return pwd_context.verify(password, password_hash)
    except ValueError:
        # Unrecognized hash format
        logger.warning("Stored password hash could not be identified")
        return False


class SessionManager:
    """Issues and verifies signed session tokens."""

    def __init__(self, secret_key: str, max_age: int = 7 * 24 * 60 * 60):
        self.serializer = URLSafeTimedSerializer(secret_key, salt="session")
        self.max_age = max_age

    def issue(self, user: User) -> str:
        return self.serializer.dumps({
            "user_id": user.id,
            "email": user.email,
            "role": user.role,
        })

    def verify(self, token: Optional[str]) -> Optional[Dict[str, Any]]:
        """
        Verify signature and expiry.

        Returns the session payload, or None for a missing, tampered or
        expired token.
        """
        if not token:
            return None
        try:
            payload = self.serializer.loads(token, max_age=self.max_age)
        except SignatureExpired:
            logger.info("Expired session token")
            return None
        except BadSignature:
            logger.warning("Invalid session token signature")
            return None
        if not isinstance(payload, dict) or not payload.get("user_id"):
            return None
        return payload


def extract_token(request: Request, cookie_name: str = "auth_token") -> Optional[str]:
    """Session token from the cookie, else from an `Authorization: Bearer` header."""
    token = request.cookies.get(cookie_name)
    if token:
        return token
    header = request.headers.get("Authorization", "")
    scheme, _, credentials = header.partition(" ")
    if scheme.lower() == "bearer" and credentials.strip():
        return credentials.strip()
    return None


async def authenticate(users: UserRepository, email: str, password: str) -> User:
    """
    Look up a user by email and check the password.

    Raises:
        AuthenticationError: Same message for unknown email and wrong password
    """
    user = await users.get_by_email(email)
    if user is None or not verify_password(password, user.password_hash):
        logger.info(f"Failed login attempt for {email}")
        raise AuthenticationError(INVALID_CREDENTIALS)
    logger.info(f"User {user.id} logged in")
    return user
