"""
Holding endpoints for the investment tracker.

Provides:
- GET /holdings: List the caller's holdings
- POST /holdings: Add a holding
- PUT /holdings/{holding_id}: Replace a holding
- DELETE /holdings/{holding_id}: Remove a holding
"""

import structlog
from fastapi import APIRouter, Depends

from ...models.holding import Holding, HoldingCreate
from ...models.identity import Identity
from ...services.portfolio_service import PortfolioService
from ..dependencies.auth import get_current_identity
from ..dependencies.portfolio_deps import get_portfolio_service
from ..schemas.portfolio_models import HoldingListResponse

logger = structlog.get_logger()

router = APIRouter(prefix="/holdings")


@router.get("", response_model=HoldingListResponse)
async def list_holdings(
    identity: Identity = Depends(get_current_identity),  # JWT authentication required
    portfolio_service: PortfolioService = Depends(get_portfolio_service),
) -> HoldingListResponse:
    """Get all holdings of the authenticated user."""
    holdings = await portfolio_service.list_holdings(identity)
    return HoldingListResponse(holdings=holdings)


@router.post("", response_model=Holding, status_code=201)
async def create_holding(
    holding: HoldingCreate,
    identity: Identity = Depends(get_current_identity),
    portfolio_service: PortfolioService = Depends(get_portfolio_service),
) -> Holding:
    """Add a holding (ticker is stored upper-case)."""
    return await portfolio_service.save_holding(identity, holding)


@router.put("/{holding_id}", response_model=Holding)
async def update_holding(
    holding_id: str,
    holding: HoldingCreate,
    identity: Identity = Depends(get_current_identity),
    portfolio_service: PortfolioService = Depends(get_portfolio_service),
) -> Holding:
    """Replace the fields of a holding the caller owns."""
    return await portfolio_service.save_holding(identity, holding, holding_id)


@router.delete("/{holding_id}")
async def delete_holding(
    holding_id: str,
    identity: Identity = Depends(get_current_identity),
    portfolio_service: PortfolioService = Depends(get_portfolio_service),
) -> dict[str, bool]:
    """Remove a holding."""
    await portfolio_service.delete_holding(identity, holding_id)
    return {"deleted": True}
