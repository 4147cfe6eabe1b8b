import asyncio
import logging
from datetime import datetime
from typing import Callable

from fastapi.concurrency import run_in_threadpool

from account_store import AccountStore
from errors import (
    AccountNotFound,
    Conflict,
    Expired,
    InternalError,
    InvalidCode,
    InvalidCredentials,
    InvalidOrExpired,
    NotFound,
    NotificationError,
    Unverified,
)
from models.account import Account, STATUS_ACTIVE
from notifier import Notifier
from security import SessionIssuer, generate_otp, hash_password, otp_expiry_from, verify_password

logger = logging.getLogger(__name__)


class AuthService:
    """Registration, OTP verification, login and password recovery.

    Collaborators are injected; the service holds no process-wide state of its own.
    """

    def __init__(
        self,
        store: AccountStore,
        notifier: Notifier,
        issuer: SessionIssuer,
        clock: Callable[[], datetime] = datetime.utcnow,
        notify_timeout: float = 15.0,
        require_verified_login: bool = False,
    ):
        self.store = store
        self.notifier = notifier
        self.issuer = issuer
        self.clock = clock
        self.notify_timeout = notify_timeout
        self.require_verified_login = require_verified_login

    async def register(self, name: str, email: str, password: str) -> None:
        if await run_in_threadpool(self.store.get_by_email, email) is not None:
            logger.info("Registration rejected, email already registered: %s", email)
            raise Conflict()

        password_hash = await self._hash(password)
        code = generate_otp()
        account = Account(name=name, email=email, password_hash=password_hash)
        account.arm_otp(code, otp_expiry_from(self.clock()))
        account = await run_in_threadpool(self.store.add, account)
        logger.info("Registered account %s (%s), awaiting OTP verification", account.id, email)

        # Account is persisted before delivery; a failed send leaves it pending
        await self._dispatch_code(email, code)

    async def verify_otp(self, email: str, code: str) -> str:
        account = await run_in_threadpool(self.store.get_by_email, email)
        if account is None:
            raise NotFound()
        self.redeem_otp(account, code, self.clock())
        account.status = STATUS_ACTIVE
        await run_in_threadpool(self.store.save, account)
        logger.info("OTP verified for account %s", account.id)
        return self.issuer.issue(account.id, account.name)

    async def login(self, email: str, password: str) -> str:
        account = await run_in_threadpool(self.store.get_by_email, email)
        if account is None:
            raise NotFound()
        if not await self._verify(password, account.password_hash):
            logger.info("Failed login for account %s", account.id)
            raise InvalidCredentials()
        if self.require_verified_login and not account.is_active:
            raise Unverified()
        return self.issuer.issue(account.id, account.name)

    async def forgot_password(self, email: str) -> None:
        account = await run_in_threadpool(self.store.get_by_email, email)
        if account is None:
            raise NotFound()
        code = generate_otp()
        # Re-arming replaces any outstanding code
        account.arm_otp(code, otp_expiry_from(self.clock()))
        await run_in_threadpool(self.store.save, account)
        logger.info("Password reset OTP armed for account %s", account.id)
        await self._dispatch_code(email, code)

    async def reset_password(self, email: str, code: str, new_password: str) -> None:
        account = await run_in_threadpool(self.store.get_by_email_and_otp, email, code)
        if account is None:
            raise InvalidOrExpired()
        try:
            self.redeem_otp(account, code, self.clock())
        except (InvalidCode, Expired):
            raise InvalidOrExpired()
        account.password_hash = await self._hash(new_password)
        await run_in_threadpool(self.store.save, account)
        logger.info("Password reset for account %s", account.id)

    async def get_profile(self, token: str) -> Account:
        claims = self.issuer.verify(token)
        account = await run_in_threadpool(self.store.get, claims.account_id)
        if account is None:
            raise AccountNotFound()
        return account

    def redeem_otp(self, account: Account, code: str, now: datetime) -> None:
        """Consume the outstanding code on ``account`` (both OTP fields are cleared together).

        Raises InvalidCode when nothing is outstanding or the code differs, and
        Expired once ``now`` has reached the expiry. Caller persists.
        """
        if account.otp_code is None or account.otp_code != code:
            raise InvalidCode()
        if account.otp_expired(now):
            raise Expired()
        account.clear_otp()

    async def _dispatch_code(self, address: str, code: str) -> None:
        try:
            await asyncio.wait_for(self.notifier.send_code(address, code), timeout=self.notify_timeout)
        except asyncio.TimeoutError:
            logger.warning("OTP delivery to %s timed out after %.1fs", address, self.notify_timeout)
        except NotificationError as e:
            logger.warning("OTP delivery to %s failed: %s", address, e)

    async def _hash(self, password: str) -> str:
        try:
            return await run_in_threadpool(hash_password, password)
        except (ValueError, TypeError) as e:
            logger.exception("Password hashing failed")
            raise InternalError() from e

    async def _verify(self, password: str, password_hash: str) -> bool:
        try:
            return await run_in_threadpool(verify_password, password, password_hash)
        except (ValueError, TypeError) as e:
            logger.exception("Stored password hash could not be checked")
            raise InternalError() from e
