#!/usr/bin/env python3
"""
Management commands for the dashboard database.

Usage:
    python scripts/manage.py create-user --email admin@example.com --password secret --role admin
    python scripts/manage.py grant --email viewer@example.com --account-id <account uuid>
    python scripts/manage.py seed-demo --days 30
"""
import argparse
import asyncio
import logging
import random
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.config import load_config
from core.exceptions import DashboardError
from core.filters import CampaignFilter
from core.models import DailyPerformance, UserRole
from core.repositories import (
    AccountRepository,
    CampaignRepository,
    Database,
    OrderRepository,
    UserRepository,
)
from web.services.auth_service import hash_password

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

DEMO_ACCOUNTS = [
    ("google", "123-456-7890", "Google Search"),
    ("meta", "act_1001", "Meta Prospecting"),
    ("tiktok", "tt_2002", "TikTok Awareness"),
]


async def create_user(db: Database, args: argparse.Namespace) -> None:
    users = UserRepository(db)
    user = await users.create(
        email=args.email,
        password_hash=hash_password(args.password),
        name=args.name,
        role=args.role,
    )
    logger.info(f"Created user {user.email} ({user.role}) id={user.id}")


async def grant(db: Database, args: argparse.Namespace) -> None:
    users = UserRepository(db)
    user = await users.get_by_email(args.email)
    if user is None:
        raise DashboardError("User not found", args.email)
    if await users.grant_account(user.id, args.account_id):
        logger.info(f"Granted {args.account_id} to {user.email}")
    else:
        logger.info(f"{user.email} already has {args.account_id}")


async def seed_demo(db: Database, args: argparse.Namespace) -> None:
    """Insert demo accounts, campaigns, daily performance and orders."""
    rng = random.Random(args.seed)
    accounts = AccountRepository(db)
    campaigns = CampaignRepository(db)
    orders = OrderRepository(db)

    today = datetime.now(timezone.utc).date()
    now = datetime.now(timezone.utc)
    daily_rows = []
    order_rows = []

    for platform, external_id, name in DEMO_ACCOUNTS:
        account = await accounts.find_by_platform_account(platform, external_id)
        if account is None:
            account = await accounts.create(platform, external_id, name, config={"demo": True})

        for n in range(1, 3):
            campaign_ext = f"{external_id}-c{n}"
            existing = await campaigns.find_many(CampaignFilter(account_id=account.id))
            campaign = next(
                (c for c in existing if c.campaign_id == campaign_ext),
                None,
            )
            if campaign is None:
                campaign = await campaigns.create(
                    account.id, campaign_ext, f"{name} #{n}", budget=rng.randint(500, 5000)
                )

            for offset in range(args.days + 1):
                impressions = rng.randint(1000, 20000)
                clicks = rng.randint(10, impressions // 20)
                cost = round(clicks * rng.uniform(0.2, 1.5), 2)
                conversions = rng.randint(0, max(1, clicks // 10))
                daily_rows.append(DailyPerformance(
                    campaign_id=campaign.id,
                    date=today - timedelta(days=offset),
                    impressions=impressions,
                    clicks=clicks,
                    cost=cost,
                    conversions=conversions,
                    revenue=round(conversions * rng.uniform(10, 80), 2),
                ))

        for i in range(args.days * 3):
            amount = round(rng.uniform(20, 400), 2)
            order_rows.append({
                "platform": platform,
                "order_id": f"{external_id}-o{i}",
                "account_id": account.id,
                "order_amount": amount,
                "commission_amount": round(amount * rng.uniform(0.05, 0.2), 2),
                "conversion_time": now - timedelta(minutes=rng.randint(0, args.days * 24 * 60)),
                "status": rng.choice(["pending", "approved", "settled"]),
            })

    stored_daily = await campaigns.upsert_daily(daily_rows)
    stored_orders = await orders.add_many(order_rows)
    logger.info(f"Seeded {stored_daily} daily rows and {stored_orders} orders")


COMMANDS = {
    "create-user": create_user,
    "grant": grant,
    "seed-demo": seed_demo,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Ads Dashboard management commands")
    parser.add_argument("--database", help="DuckDB path (default: DATABASE_PATH)")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("create-user", help="Create a dashboard user")
    p.add_argument("--email", required=True)
    p.add_argument("--password", required=True)
    p.add_argument("--name")
    p.add_argument("--role", choices=[r.value for r in UserRole], default=UserRole.VIEWER.value)

    p = sub.add_parser("grant", help="Grant a user access to an account")
    p.add_argument("--email", required=True)
    p.add_argument("--account-id", required=True, help="Internal account id")

    p = sub.add_parser("seed-demo", help="Insert demo data")
    p.add_argument("--days", type=int, default=30)
    p.add_argument("--seed", type=int, default=42)

    return parser


async def main(args: argparse.Namespace) -> int:
    config = load_config()
    db = Database(args.database or config.database.path)
    await db.connect()
    try:
        await COMMANDS[args.command](db, args)
    except DashboardError as e:
        logger.error(str(e))
        return 1
    finally:
        await db.close()
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main(build_parser().parse_args())))
