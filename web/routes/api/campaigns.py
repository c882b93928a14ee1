"""Campaign CRUD and daily performance endpoints."""
from datetime import date, datetime, timedelta
from typing import Optional
from zoneinfo import ZoneInfo

from fastapi import APIRouter, Depends, Query, Request

from core.config import AppConfig
from core.filters import CampaignFilter, DateRange
from core.pagination import PageRequest
from core.repositories import CampaignRepository
from core.validators import (
    validate_datetime,
    validate_date_range,
    validate_name,
    validate_platform,
    validate_required,
    validate_status,
)
from web.schemas import CampaignCreateRequest, CampaignUpdateRequest
from ._deps import limiter, ok, get_campaigns, get_config

router = APIRouter()


def _day(value: Optional[str], field: str) -> Optional[date]:
    parsed = validate_datetime(value, field)
    return parsed.date() if parsed else None


@router.get("/campaigns")
@limiter.limit("60/minute")
async def list_campaigns(
    request: Request,
    accountId: Optional[str] = Query(None),
    status: Optional[str] = Query(None),
    platform: Optional[str] = Query(None),
    page: Optional[int] = Query(None),
    limit: Optional[int] = Query(None),
    campaigns: CampaignRepository = Depends(get_campaigns),
):
    paging = PageRequest.from_query(page, limit)
    filters = CampaignFilter(
        account_id=accountId or None,
        status=validate_status(status),
        platform=validate_platform(platform),
    )
    rows = await campaigns.find_many(filters, offset=paging.offset, limit=paging.limit)
    total = await campaigns.count(filters)
    return ok({
        "campaigns": [campaign.to_dict() for campaign in rows],
        "pagination": paging.meta(total),
    })


@router.post("/campaigns")
@limiter.limit("30/minute")
async def create_campaign(
    request: Request,
    body: CampaignCreateRequest,
    campaigns: CampaignRepository = Depends(get_campaigns),
):
    """Create a campaign. The account must exist; (accountId, campaignId) is unique."""
    campaign = await campaigns.create(
        account_id=validate_required(body.accountId, "accountId"),
        campaign_id=validate_required(body.campaignId, "campaignId"),
        campaign_name=validate_name(
            validate_required(body.campaignName, "campaignName"), "campaignName", allow_none=False
        ),
        status=validate_status(body.status),
        budget=body.budget,
    )
    return ok(campaign.to_dict(), "Campaign created")


@router.get("/campaigns/{campaign_id}")
@limiter.limit("60/minute")
async def get_campaign(
    request: Request,
    campaign_id: str,
    campaigns: CampaignRepository = Depends(get_campaigns),
):
    campaign = await campaigns.require(campaign_id)
    return ok(campaign.to_dict())


@router.put("/campaigns/{campaign_id}")
@limiter.limit("30/minute")
async def update_campaign(
    request: Request,
    campaign_id: str,
    body: CampaignUpdateRequest,
    campaigns: CampaignRepository = Depends(get_campaigns),
):
    campaign = await campaigns.update(
        campaign_id,
        campaign_name=validate_name(body.campaignName, "campaignName"),
        status=validate_status(body.status),
        budget=body.budget,
    )
    return ok(campaign.to_dict(), "Campaign updated")


@router.delete("/campaigns/{campaign_id}")
@limiter.limit("30/minute")
async def delete_campaign(
    request: Request,
    campaign_id: str,
    campaigns: CampaignRepository = Depends(get_campaigns),
):
    await campaigns.delete(campaign_id)
    return ok(message="Campaign deleted")


@router.get("/campaigns/{campaign_id}/daily")
@limiter.limit("60/minute")
async def get_campaign_daily(
    request: Request,
    campaign_id: str,
    startDate: Optional[str] = Query(None),
    endDate: Optional[str] = Query(None),
    campaigns: CampaignRepository = Depends(get_campaigns),
    config: AppConfig = Depends(get_config),
):
    """
    Daily performance rows for one campaign.

    Defaults to the reporting window ending today in the reporting time zone.
    """
    await campaigns.require(campaign_id)

    end = _day(endDate, "endDate") or datetime.now(ZoneInfo(config.stats.timezone)).date()
    start = _day(startDate, "startDate") or end - timedelta(days=config.stats.window_days)
    validate_date_range(
        datetime.combine(start, datetime.min.time()),
        datetime.combine(end, datetime.min.time()),
    )

    days = DateRange(start, end)
    rows = await campaigns.daily(campaign_id, days)
    return ok({
        "campaignId": campaign_id,
        "startDate": days.start_str,
        "endDate": days.end_str,
        "daily": [row.to_dict() for row in rows],
    })
