import logging
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError
from models.account import Account, STATUS_PENDING_VERIFICATION
from errors import Conflict

logger = logging.getLogger(__name__)


class AccountStore:
    """Persistence boundary for Account rows, keyed by unique email.

    Writes are read-modify-write; the mapper's revision counter turns a lost
    update into ``Conflict`` instead of a silent overwrite.
    """

    def __init__(self, db: Session):
        self.db = db

    def get_by_email(self, email: str) -> Account | None:
        return self.db.query(Account).filter(Account.email == email).first()

    def get_by_email_and_otp(self, email: str, otp_code: str) -> Account | None:
        return (
            self.db.query(Account)
            .filter(Account.email == email, Account.otp_code == otp_code)
            .first()
        )

    def get(self, account_id: int) -> Account | None:
        return self.db.get(Account, account_id)

    def add(self, account: Account) -> Account:
        if account.status is None:
            account.status = STATUS_PENDING_VERIFICATION
        self.db.add(account)
        try:
            self.db.commit()
        except IntegrityError:
            # Lost a race against another registration for the same email
            self.db.rollback()
            raise Conflict()
        self.db.refresh(account)
        return account

    def save(self, account: Account) -> Account:
        try:
            self.db.commit()
        except StaleDataError:
            self.db.rollback()
            logger.info("Concurrent update detected for account %s", account.id)
            raise Conflict("Account was modified concurrently, retry the request")
        except SQLAlchemyError:
            self.db.rollback()
            raise
        self.db.refresh(account)
        return account
