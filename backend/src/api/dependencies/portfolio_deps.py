"""
Dependencies for profile and portfolio API endpoints.
"""

from fastapi import Depends

from ...core.config import Settings, get_settings
from ...database.mongodb import HOLDINGS, PROFILES, TRANSACTIONS, MongoDB
from ...database.repositories.holding_repository import HoldingRepository
from ...database.repositories.profile_repository import ProfileRepository
from ...database.repositories.transaction_repository import TransactionRepository
from ...services.financial_data_service import FinancialDataService
from ...services.portfolio_service import PortfolioService
from ...services.profile_service import ProfileService
from .auth import get_mongodb


def get_profile_repository(mongodb: MongoDB = Depends(get_mongodb)) -> ProfileRepository:
    """Get profile repository instance."""
    return ProfileRepository(mongodb.get_collection(PROFILES))


def get_holding_repository(
    mongodb: MongoDB = Depends(get_mongodb),
) -> HoldingRepository:
    """Get holding repository instance."""
    return HoldingRepository(mongodb.get_collection(HOLDINGS))


def get_transaction_repository(
    mongodb: MongoDB = Depends(get_mongodb),
) -> TransactionRepository:
    """Get transaction repository instance."""
    return TransactionRepository(mongodb.get_collection(TRANSACTIONS))


def get_profile_service(
    profile_repo: ProfileRepository = Depends(get_profile_repository),
) -> ProfileService:
    """Get profile service instance."""
    return ProfileService(profile_repo)


def get_portfolio_service(
    holding_repo: HoldingRepository = Depends(get_holding_repository),
    transaction_repo: TransactionRepository = Depends(get_transaction_repository),
) -> PortfolioService:
    """Get portfolio service instance."""
    return PortfolioService(holding_repo, transaction_repo)


def get_financial_data_service(
    profile_repo: ProfileRepository = Depends(get_profile_repository),
    transaction_repo: TransactionRepository = Depends(get_transaction_repository),
    holding_repo: HoldingRepository = Depends(get_holding_repository),
    settings: Settings = Depends(get_settings),
) -> FinancialDataService:
    """Get financial data service instance."""
    return FinancialDataService(profile_repo, transaction_repo, holding_repo, settings)
