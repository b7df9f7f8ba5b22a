"""
Portfolio API module for the user's own financial records.

Provides REST API access to:
- Holdings: positions maintained by the user (value and gain)
- Transactions: signed income and expense records
- Financial summary: the derived view used as chat context

This module aggregates all portfolio sub-routers into a single main router.
"""

from fastapi import APIRouter

from .holdings import router as holdings_router
from .summary import router as summary_router
from .transactions import router as transactions_router

# Create main portfolio router
router = APIRouter(prefix="/api/portfolio", tags=["portfolio"])

# Include all sub-routers
router.include_router(holdings_router)
router.include_router(transactions_router)
router.include_router(summary_router)

__all__ = ["router"]
