"""Ad account CRUD endpoints."""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from core.filters import AccountFilter
from core.repositories import AccountRepository
from core.validators import (
    validate_currency,
    validate_name,
    validate_platform,
    validate_required,
    validate_status,
)
from web.schemas import AccountCreateRequest, AccountUpdateRequest
from ._deps import limiter, ok, get_accounts

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/accounts")
@limiter.limit("60/minute")
async def list_accounts(
    request: Request,
    platform: Optional[str] = Query(None),
    status: Optional[str] = Query(None),
    accounts: AccountRepository = Depends(get_accounts),
):
    """List accounts with parsed config, ordered by platform then name."""
    filters = AccountFilter(
        platform=validate_platform(platform),
        status=validate_status(status),
    )
    rows = await accounts.find_many(filters)
    return ok([account.to_dict() for account in rows])


@router.post("/accounts")
@limiter.limit("30/minute")
async def create_account(
    request: Request,
    body: AccountCreateRequest,
    accounts: AccountRepository = Depends(get_accounts),
):
    """Create an account. Duplicate (platform, accountId) is a conflict."""
    platform = validate_platform(validate_required(body.platform, "platform"), allow_none=False)
    external_id = validate_required(body.accountId, "accountId")
    name = validate_name(validate_required(body.accountName, "accountName"), "accountName", allow_none=False)

    account = await accounts.create(
        platform=platform,
        account_id=external_id,
        account_name=name,
        currency=validate_currency(body.currency),
        status=validate_status(body.status),
        config=body.config,
    )
    return ok(account.to_dict(), "Account created")


@router.get("/accounts/{account_id}")
@limiter.limit("60/minute")
async def get_account(
    request: Request,
    account_id: str,
    accounts: AccountRepository = Depends(get_accounts),
):
    account = await accounts.require(account_id)
    return ok(account.to_dict())


@router.put("/accounts/{account_id}")
@limiter.limit("30/minute")
async def update_account(
    request: Request,
    account_id: str,
    body: AccountUpdateRequest,
    accounts: AccountRepository = Depends(get_accounts),
):
    """Partial update; fields left out of the body keep their values."""
    account = await accounts.update(
        account_id,
        account_name=validate_name(body.accountName, "accountName"),
        currency=validate_currency(body.currency),
        status=validate_status(body.status),
        config=body.config,
    )
    return ok(account.to_dict(), "Account updated")


@router.delete("/accounts/{account_id}")
@limiter.limit("30/minute")
async def delete_account(
    request: Request,
    account_id: str,
    accounts: AccountRepository = Depends(get_accounts),
):
    await accounts.delete(account_id)
    return ok(message="Account deleted")
