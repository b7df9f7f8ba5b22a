"""
Holdings and transactions maintained by the user.

These records feed the financial summary; the service only scopes them to
the caller and maps storage conflicts to API errors.
"""

import structlog
from pymongo.errors import DuplicateKeyError

from ..core.exceptions import NotFoundError
from ..database.repositories.holding_repository import HoldingRepository
from ..database.repositories.transaction_repository import TransactionRepository
from ..models.holding import Holding, HoldingCreate
from ..models.identity import Identity
from ..models.transaction import Transaction, TransactionCreate

logger = structlog.get_logger()


class PortfolioService:
    """CRUD over a user's holdings and transactions."""

    def __init__(
        self,
        holding_repo: HoldingRepository,
        transaction_repo: TransactionRepository,
    ):
        self.holding_repo = holding_repo
        self.transaction_repo = transaction_repo

    # ===== Holdings =====

    async def list_holdings(self, identity: Identity) -> list[Holding]:
        return await self.holding_repo.list_by_user(identity.user_id)

    async def save_holding(
        self,
        identity: Identity,
        holding: HoldingCreate,
        holding_id: str | None = None,
    ) -> Holding:
        """
        Create a holding, or replace one the caller owns.

        Raises:
            NotFoundError: holding_id exists but belongs to another user
        """
        try:
            return await self.holding_repo.upsert(identity.user_id, holding, holding_id)
        except DuplicateKeyError as e:
            # Upsert filter includes user_id, so a foreign ID collides on insert
            logger.warning(
                "Holding update rejected: not owned",
                user_id=identity.user_id,
                holding_id=holding_id,
            )
            raise NotFoundError("Holding not found", holding_id=holding_id) from e

    async def delete_holding(self, identity: Identity, holding_id: str) -> None:
        if not await self.holding_repo.delete(identity.user_id, holding_id):
            raise NotFoundError("Holding not found", holding_id=holding_id)

    # ===== Transactions =====

    async def list_transactions(self, identity: Identity) -> list[Transaction]:
        return await self.transaction_repo.list_by_user(identity.user_id)

    async def save_transaction(
        self,
        identity: Identity,
        transaction: TransactionCreate,
        transaction_id: str | None = None,
    ) -> Transaction:
        """
        Create a transaction, or replace one the caller owns.

        Raises:
            NotFoundError: transaction_id exists but belongs to another user
        """
        try:
            return await self.transaction_repo.upsert(
                identity.user_id, transaction, transaction_id
            )
        except DuplicateKeyError as e:
            logger.warning(
                "Transaction update rejected: not owned",
                user_id=identity.user_id,
                transaction_id=transaction_id,
            )
            raise NotFoundError(
                "Transaction not found", transaction_id=transaction_id
            ) from e

    async def delete_transaction(self, identity: Identity, transaction_id: str) -> None:
        if not await self.transaction_repo.delete(identity.user_id, transaction_id):
            raise NotFoundError("Transaction not found", transaction_id=transaction_id)
