import logging

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from .config import JWT_ALGORITHM, JWT_SECRET
from .database import get_db
from .errors import Forbidden, Unauthorized
from .models import ROLE_CUSTOMER, ROLE_VENDOR, Account
from .security_utils import verify_jwt_token

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


def resolve_account_id(token: str, secret: str = JWT_SECRET, algorithm: str = JWT_ALGORITHM) -> int:
    """Resolve a bearer credential issued by the auth service to an account id"""
    payload = verify_jwt_token(token, secret, algorithm)
    if not payload:
        raise Unauthorized("Invalid or expired token")

    subject = payload.get("sub") or payload.get("id")
    try:
        return int(subject)
    except (TypeError, ValueError):
        logger.error(f"❌ Token missing account id claim. Available claims: {list(payload.keys())}")
        raise Unauthorized("Invalid token claims") from None


async def get_current_account(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db),
) -> Account:
    """Get the current account from the bearer token"""
    if not credentials:
        raise Unauthorized(
            "Not authenticated. Please provide a valid Bearer token in the Authorization header."
        )

    account_id = resolve_account_id(credentials.credentials)
    account = db.query(Account).filter(Account.id == account_id).first()
    if not account:
        logger.warning(f"⚠️ Token for unknown account {account_id}")
        raise Unauthorized("Account not found")

    logger.debug(f"✅ Account authenticated: {account.email}")
    return account


async def require_vendor(account: Account = Depends(get_current_account)) -> Account:
    if not account.has_role(ROLE_VENDOR):
        raise Forbidden("Access denied. Vendor only.")
    return account


async def require_customer(account: Account = Depends(get_current_account)) -> Account:
    if not account.has_role(ROLE_CUSTOMER):
        raise Forbidden("Access denied. Customer only.")
    return account
