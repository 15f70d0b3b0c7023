import logging
from passlib.context import CryptContext

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Checks a password against a stored digest. An unreadable digest never matches."""
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        logger.warning("Stored password digest could not be identified.")
        return False


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)
