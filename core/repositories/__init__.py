"""
Repository layer over the DuckDB store.

- Database: connection management and schema initialization
- AccountRepository: ad account CRUD
- OrderRepository: order scans, counts, sums and grouped reductions
- CampaignRepository: campaign CRUD and daily performance
- UserRepository: users and account grants
"""
from core.repositories.base import Database, BaseRepository
from core.repositories.accounts import AccountRepository
from core.repositories.orders import OrderRepository
from core.repositories.campaigns import CampaignRepository
from core.repositories.users import UserRepository

__all__ = [
    "Database",
    "BaseRepository",
    "AccountRepository",
    "OrderRepository",
    "CampaignRepository",
    "UserRepository",
]
