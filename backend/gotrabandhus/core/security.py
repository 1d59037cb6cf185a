import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional, Union
from jose import JWTError, jwt
from passlib.context import CryptContext
from gotrabandhus.core.config import Settings

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    # Use timezone.utc instead of utcnow() (deprecated in Python 3.12+)
    return datetime.now(timezone.utc)


class CredentialService:
    """Hashes passwords on write and verifies them on login"""

    def __init__(self, rounds: int = 10):
        # CryptContext handles password hashing using bcrypt
        # bcrypt is slow by design to prevent brute-force attacks
        # rounds is the work factor - each +1 doubles the cost of a guess
        self.pwd_context = CryptContext(
            schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds)
        # Digest of a random password nobody knows
        # Login checks against it when the email is unknown
        self._dummy_digest = self.hash(secrets.token_urlsafe(32))

    def hash(self, plaintext: str) -> str:
        """Hash a password using bcrypt"""
        # bcrypt generates a random salt and embeds it in the digest
        # Same password -> different digests, both of which verify
        return self.pwd_context.hash(plaintext)

    def verify(self, plaintext: str, digest: str) -> bool:
        """Verify a password against a digest using constant-time comparison"""
        try:
            # Salt and work factor are read back out of the digest itself
            return self.pwd_context.verify(plaintext, digest)
        except (ValueError, TypeError):
            # Digest is empty or not a bcrypt hash
            logger.warning("Stored password digest could not be parsed")
            return False

    def verify_dummy(self, plaintext: str) -> bool:
        """
        Spend the same bcrypt work as verify() without a real digest.

        Always False. Used when the account does not exist so an unknown
        email takes as long to reject as a wrong password.
        """
        self.pwd_context.verify(plaintext, self._dummy_digest)
        return False


class TokenService:
    """
    Issues and verifies signed bearer tokens.

    A token binds a user id to an expiry. There is no revocation list:
    logging out only discards the token on the client, and an issued token
    stays valid until it expires.
    """

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        expires_delta: timedelta = timedelta(days=7),
        clock: Clock = utc_now,
    ):
        # If the secret is compromised, all tokens can be forged
        self._secret = secret
        # Algorithm must match in decode - changing it breaks all existing tokens
        self._algorithm = algorithm
        self._expires_delta = expires_delta
        # Injected so expiry can be checked against a controlled time
        self._clock = clock

    @classmethod
    def from_settings(cls, settings: Settings, clock: Clock = utc_now) -> "TokenService":
        return cls(
            secret=settings.JWT_SECRET,
            algorithm=settings.JWT_ALGORITHM,
            expires_delta=timedelta(days=settings.ACCESS_TOKEN_EXPIRE_DAYS),
            clock=clock,
        )

    def issue(self, user_id: Union[int, str]) -> str:
        """Create a token for user_id that expires after the configured lifetime"""
        issued_at = self._clock()
        # JWT standard 'sub' claim carries the user id as a string
        # 'exp' bounds how long a leaked token stays useful
        to_encode = {
            "sub": str(user_id),
            "iat": int(issued_at.timestamp()),
            "exp": int((issued_at + self._expires_delta).timestamp()),
        }
        return jwt.encode(to_encode, self._secret, algorithm=self._algorithm)

    def verify(self, token: str) -> Optional[str]:
        """Return the user id in token, or None if it is malformed, tampered with or expired"""
        try:
            # Signature is verified here; expiry is checked against the
            # injected clock below rather than the wall clock
            payload = jwt.decode(
                token, self._secret, algorithms=[self._algorithm],
                options={"verify_exp": False, "verify_iat": False})
        except JWTError as exc:
            # Bad format, wrong secret or tampered payload - all the same to callers
            logger.debug(f"Rejected token: {exc}")
            return None

        user_id = payload.get("sub")
        expires_at = payload.get("exp")
        # A token without a subject or an expiry was not issued by us
        if not isinstance(user_id, str) or not user_id:
            return None
        if not isinstance(expires_at, (int, float)):
            return None
        if self._clock().timestamp() >= expires_at:
            logger.debug("Rejected expired token")
            return None
        return user_id
