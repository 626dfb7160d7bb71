"""Account repository - Database operations for accounts and profiles"""

from typing import Optional

from sqlalchemy.orm import Session, joinedload

from ...models import Account, BusinessPage, VendorProfile


class AccountRepository:
    """Repository for account database operations"""

    @staticmethod
    def get_by_id(db: Session, account_id: int) -> Optional[Account]:
        return (
            db.query(Account)
            .options(joinedload(Account.customer_profile), joinedload(Account.vendor_profile))
            .filter(Account.id == account_id)
            .first()
        )

    @staticmethod
    def get_by_email(db: Session, email: str) -> Optional[Account]:
        return db.query(Account).filter(Account.email == email).first()

    @staticmethod
    def create(db: Session, **account_data) -> Account:
        """Create an account; the caller attaches profiles and commits"""
        account = Account(**account_data)
        db.add(account)
        return account

    @staticmethod
    def get_vendor_profile(db: Session, account_id: int) -> Optional[VendorProfile]:
        return db.query(VendorProfile).filter(VendorProfile.account_id == account_id).first()

    @staticmethod
    def count_pages(db: Session, account_id: int) -> int:
        return db.query(BusinessPage).filter(BusinessPage.vendor_id == account_id).count()