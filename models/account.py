from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, Index
from database import Base

STATUS_PENDING_VERIFICATION = "pending_verification"
STATUS_ACTIVE = "active"


class Account(Base):
    """A registered user. Email is the unique identity, stored exactly as supplied."""
    __tablename__ = "accounts"
    __table_args__ = (
        Index("ix_accounts_email_otp", "email", "otp_code"),
    )

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    email = Column(String, unique=True, nullable=False, index=True)
    password_hash = Column(String, nullable=False)
    status = Column(String(32), nullable=False, default=STATUS_PENDING_VERIFICATION)
    # Outstanding challenge: both set or both NULL. Use arm_otp / clear_otp.
    otp_code = Column(String(6), nullable=True)
    otp_expires_at = Column(DateTime, nullable=True)
    avatar = Column(String, nullable=True)
    # Maintained by the social side of the product; zero at creation
    posts_count = Column(Integer, nullable=False, default=0)
    followers_count = Column(Integer, nullable=False, default=0)
    following_count = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
    revision = Column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": revision}

    @property
    def is_active(self) -> bool:
        return self.status == STATUS_ACTIVE

    @property
    def has_pending_otp(self) -> bool:
        return self.otp_code is not None

    def arm_otp(self, code: str, expires_at: datetime) -> None:
        self.otp_code = code
        self.otp_expires_at = expires_at

    def clear_otp(self) -> None:
        self.otp_code = None
        self.otp_expires_at = None

    def otp_expired(self, now: datetime) -> bool:
        # A missing expiry counts as expired
        return self.otp_expires_at is None or now >= self.otp_expires_at

    def __repr__(self) -> str:
        return f"<Account id={self.id} email={self.email!r} status={self.status}>"
