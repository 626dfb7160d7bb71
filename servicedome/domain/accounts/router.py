"""Account router - FastAPI endpoints for registration and profile management"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import get_current_account
from ...database import get_db
from ...models import Account
from .schemas import AccountCreate, AccountUpdate, PushTokenUpdate
from .service import AccountService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/accounts", tags=["Accounts"])


def get_account_service(db: Session = Depends(get_db)) -> AccountService:
    """Dependency injection for AccountService"""
    return AccountService(db)


@router.post("/register", status_code=201)
async def register(
    data: AccountCreate,
    service: AccountService = Depends(get_account_service),
):
    """Register a customer and/or vendor account"""
    account = service.create_account(data)
    return {"success": True, "account": service.to_response(account)}


@router.get("/me")
async def get_me(
    current_account: Account = Depends(get_current_account),
    service: AccountService = Depends(get_account_service),
):
    """Get the current account with its profiles"""
    account = service.get_account(current_account.id)
    return {"success": True, "account": service.to_response(account)}


@router.put("/me")
async def update_me(
    data: AccountUpdate,
    current_account: Account = Depends(get_current_account),
    service: AccountService = Depends(get_account_service),
):
    """Update name, phone, roles or customer address"""
    account = service.update_profile(current_account.id, data)
    return {"success": True, "account": service.to_response(account)}


@router.put("/me/push-token")
async def update_push_token(
    data: PushTokenUpdate,
    current_account: Account = Depends(get_current_account),
    service: AccountService = Depends(get_account_service),
):
    """Save the Expo push token of the current device"""
    service.update_push_token(current_account.id, data.token)
    return {"success": True}
