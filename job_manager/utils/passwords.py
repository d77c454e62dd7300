"""
Password hashing for company credentials (passlib, salted PBKDF2-SHA256)
"""

from passlib.context import CryptContext

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, hashed_password: str) -> bool:
    # hashes of an unknown scheme never verify
    if not pwd_context.identify(hashed_password):
        return False
    return pwd_context.verify(password, hashed_password)
