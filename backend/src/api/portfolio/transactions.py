"""
Transaction endpoints for cash-flow tracking.

Amounts are signed: positive for income, negative for expenses.
"""

import structlog
from fastapi import APIRouter, Depends

from ...models.identity import Identity
from ...models.transaction import Transaction, TransactionCreate
from ...services.portfolio_service import PortfolioService
from ..dependencies.auth import get_current_identity
from ..dependencies.portfolio_deps import get_portfolio_service
from ..schemas.portfolio_models import TransactionListResponse

logger = structlog.get_logger()

router = APIRouter(prefix="/transactions")


@router.get("", response_model=TransactionListResponse)
async def list_transactions(
    identity: Identity = Depends(get_current_identity),
    portfolio_service: PortfolioService = Depends(get_portfolio_service),
) -> TransactionListResponse:
    """Get the caller's transactions, newest first."""
    transactions = await portfolio_service.list_transactions(identity)
    return TransactionListResponse(transactions=transactions)


@router.post("", response_model=Transaction, status_code=201)
async def create_transaction(
    transaction: TransactionCreate,
    identity: Identity = Depends(get_current_identity),
    portfolio_service: PortfolioService = Depends(get_portfolio_service),
) -> Transaction:
    return await portfolio_service.save_transaction(identity, transaction)


@router.put("/{transaction_id}", response_model=Transaction)
async def update_transaction(
    transaction_id: str,
    transaction: TransactionCreate,
    identity: Identity = Depends(get_current_identity),
    portfolio_service: PortfolioService = Depends(get_portfolio_service),
) -> Transaction:
    return await portfolio_service.save_transaction(identity, transaction, transaction_id)


@router.delete("/{transaction_id}")
async def delete_transaction(
    transaction_id: str,
    identity: Identity = Depends(get_current_identity),
    portfolio_service: PortfolioService = Depends(get_portfolio_service),
) -> dict[str, bool]:
    await portfolio_service.delete_transaction(identity, transaction_id)
    return {"deleted": True}
