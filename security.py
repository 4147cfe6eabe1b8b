from datetime import datetime, timedelta
from typing import Optional
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from passlib.context import CryptContext
from jose import JWTError, jwt
from config import settings
from errors import InvalidToken, Unauthorized
import secrets

OTP_MIN = 100000
OTP_MAX = 999999

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=settings.BCRYPT_ROUNDS)
bearer_scheme = HTTPBearer(auto_error=False)

# bcrypt only looks at the first 72 bytes of a secret
MAX_PASSWORD_BYTES = 72

def password_too_long(password: str) -> bool:
    return len(password.encode("utf-8")) > MAX_PASSWORD_BYTES

def verify_password(plain_password, hashed_password):
    if not hashed_password:
        return False
    # Anything longer than bcrypt's limit could only match by truncation
    if password_too_long(plain_password):
        return False
    return pwd_context.verify(plain_password, hashed_password)

def hash_password(password):
    if password_too_long(password):
        raise ValueError(f"password exceeds {MAX_PASSWORD_BYTES} bytes")
    return pwd_context.hash(password)

def generate_otp() -> str:
    """6-digit code, uniform over 100000-999999 from the OS CSPRNG."""
    return str(OTP_MIN + secrets.randbelow(OTP_MAX - OTP_MIN + 1))

def otp_expiry_from(now: datetime) -> datetime:
    return now + timedelta(minutes=settings.OTP_EXPIRE_MINUTES)


class SessionClaims:
    __slots__ = ("account_id", "display_name")

    def __init__(self, account_id: int, display_name: str):
        self.account_id = account_id
        self.display_name = display_name

    def __repr__(self):
        return f"SessionClaims(account_id={self.account_id!r}, display_name={self.display_name!r})"


class SessionIssuer:
    """Mints and checks signed, time-bounded session tokens.

    Payload is ``{"userId": ..., "name": ..., "exp": ...}``. Bad signatures,
    malformed tokens and expired tokens all surface as ``InvalidToken``.
    """

    def __init__(self, secret_key: str, algorithm: str = "HS256", lifetime: timedelta = timedelta(hours=1)):
        if not secret_key:
            raise ValueError("session signing secret is required")
        self._secret_key = secret_key
        self._algorithm = algorithm
        self.lifetime = lifetime

    def issue(self, account_id: int, display_name: str, now: Optional[datetime] = None) -> str:
        issued_at = now or datetime.utcnow()
        to_encode = {
            "userId": account_id,
            "name": display_name,
            "iat": issued_at,
            "exp": issued_at + self.lifetime,
        }
        return jwt.encode(to_encode, self._secret_key, algorithm=self._algorithm)

    def verify(self, token: str) -> SessionClaims:
        try:
            payload = jwt.decode(token, self._secret_key, algorithms=[self._algorithm])
        except JWTError:
            raise InvalidToken()
        account_id = payload.get("userId")
        if account_id is None:
            raise InvalidToken()
        return SessionClaims(account_id=account_id, display_name=payload.get("name", ""))


session_issuer = SessionIssuer(
    settings.SECRET_KEY,
    algorithm=settings.ALGORITHM,
    lifetime=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
)

def get_session_issuer() -> SessionIssuer:
    return session_issuer

def get_bearer_token(credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme)) -> str:
    """Pull the raw bearer token off the Authorization header (401 when absent)."""
    if credentials is None or not credentials.credentials:
        raise Unauthorized()
    return credentials.credentials
