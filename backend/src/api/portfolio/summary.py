"""
Financial summary endpoint.

Exposes the same derived view the chat assistant receives as context.
"""

import structlog
from fastapi import APIRouter, Depends

from ...core.exceptions import NotFoundError
from ...models.financial_summary import FinancialSummary
from ...models.identity import Identity
from ...services.financial_data_service import FinancialDataService
from ..dependencies.auth import get_current_identity
from ..dependencies.portfolio_deps import get_financial_data_service

logger = structlog.get_logger()

router = APIRouter()


@router.get("/financial-summary", response_model=FinancialSummary)
async def get_financial_summary(
    identity: Identity = Depends(get_current_identity),
    financial_service: FinancialDataService = Depends(get_financial_data_service),
) -> FinancialSummary:
    """
    Aggregated profile, cash-flow, portfolio, tax and goal metrics.

    Health metrics are approximate indicators.

    Raises:
        404 when the user has no profile yet or the data could not be loaded
    """
    summary = await financial_service.get_financial_summary(identity)
    if summary is None:
        raise NotFoundError("No financial data available", user_id=identity.user_id)
    return summary
