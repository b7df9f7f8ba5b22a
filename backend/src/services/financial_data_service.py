"""
Financial data aggregation for the chat assistant.

Collects a user's profile, transactions and holdings and derives the
FinancialSummary that is rendered into the assistant's system prompt.
"""

import structlog

from ..core.config import Settings
from ..core.financial_metrics import (
    calculate_financial_health,
    calculate_goals_progress,
    calculate_investment_metrics,
    calculate_tax_estimate,
    calculate_transaction_metrics,
    describe_investment_style,
    describe_risk_tolerance,
)
from ..database.repositories.holding_repository import HoldingRepository
from ..database.repositories.profile_repository import ProfileRepository
from ..database.repositories.transaction_repository import TransactionRepository
from ..models.financial_summary import FinancialSummary, ProfileSnapshot
from ..models.identity import Identity

logger = structlog.get_logger()

NO_FINANCIAL_DATA = "No financial data available for this user yet."


class FinancialDataService:
    """Builds the derived financial view of a user."""

    def __init__(
        self,
        profile_repo: ProfileRepository,
        transaction_repo: TransactionRepository,
        holding_repo: HoldingRepository,
        settings: Settings,
    ):
        self.profile_repo = profile_repo
        self.transaction_repo = transaction_repo
        self.holding_repo = holding_repo
        self.settings = settings

    async def get_financial_summary(
        self, identity: Identity | None
    ) -> FinancialSummary | None:
        """
        Aggregate the user's financial data.

        Returns None when there is no identity, no stored profile, neither
        transactions nor holdings, or any lookup fails. Callers treat None
        as "no data", never as zeros.
        """
        if identity is None:
            logger.info("Financial summary skipped: no identity")
            return None

        try:
            profile = await self.profile_repo.get(identity.user_id)
            if profile is None:
                logger.info("Financial summary skipped: no profile", user_id=identity.user_id)
                return None

            transactions = await self.transaction_repo.list_by_user(identity.user_id)
            holdings = await self.holding_repo.list_by_user(identity.user_id)
        except Exception as e:
            logger.warning(
                "Failed to load financial data",
                user_id=identity.user_id,
                error=str(e),
                error_type=type(e).__name__,
            )
            return None

        if not transactions and not holdings:
            logger.info("Financial summary skipped: no records", user_id=identity.user_id)
            return None

        transaction_metrics = calculate_transaction_metrics(transactions)
        investment_metrics = calculate_investment_metrics(holdings)

        summary = FinancialSummary(
            user_profile=ProfileSnapshot(
                persona=profile.persona.value,
                age=profile.age,
                income=profile.income.value if profile.income else "",
                goals=profile.goals,
                risk_tolerance=profile.risk_tolerance,
                time_horizon=profile.time_horizon,
                country=profile.country,
                currency=profile.currency,
            ),
            investments=investment_metrics,
            transactions=transaction_metrics,
            taxes=calculate_tax_estimate(transactions, self.settings.estimated_tax_rate),
            financial_health=calculate_financial_health(
                transaction_metrics, investment_metrics
            ),
            goals_progress=calculate_goals_progress(
                profile.goals,
                investment_metrics.total_portfolio_value,
                self.settings.default_goal_target,
            ),
            risk_tolerance_label=describe_risk_tolerance(profile.risk_tolerance),
            investment_style=describe_investment_style(profile.persona.value),
        )

        logger.info(
            "Financial summary built",
            user_id=identity.user_id,
            transactions=len(transactions),
            holdings=len(holdings),
        )

        return summary


def _money(symbol: str, amount: float) -> str:
    return f"{symbol}{amount:,.2f}"


def format_financial_context(
    summary: FinancialSummary | None, currency_symbol: str = "₹"
) -> str:
    """
    Render a summary as a system-prompt block.

    A missing summary renders an explicit placeholder so the model never
    mistakes absent data for a balance of zero.
    """
    if summary is None:
        return f"USER FINANCIAL DATA:\n{NO_FINANCIAL_DATA}"

    profile = summary.user_profile
    investments = summary.investments
    cash = summary.transactions
    health = summary.financial_health

    lines = [
        "USER FINANCIAL PROFILE:",
        f"- Persona: {profile.persona}",
        f"- Age: {profile.age if profile.age is not None else 'Not specified'}",
        f"- Income Range: {profile.income or 'Not specified'}",
        f"- Risk Tolerance: {summary.risk_tolerance_label}",
        f"- Investment Style: {summary.investment_style}",
        f"- Financial Goals: {profile.goals or 'Not specified'}",
        "",
        "CURRENT FINANCIAL STATUS:",
        f"- Total Portfolio Value: {_money(currency_symbol, investments.total_portfolio_value)}",
        f"- Portfolio Gain: {_money(currency_symbol, investments.total_gain)}"
        f" ({investments.total_gain_percent:.1f}%)",
        f"- Total Income: {_money(currency_symbol, cash.total_income)}",
        f"- Total Expenses: {_money(currency_symbol, cash.total_expenses)}",
        f"- Net Cash Flow: {_money(currency_symbol, cash.net_cash_flow)}",
        f"- Savings Rate: {health.savings_rate:.1f}%",
    ]

    if investments.holdings:
        lines += ["", "INVESTMENT HOLDINGS:"]
        lines += [
            f"- {h.ticker}: {_money(currency_symbol, h.value)} ({h.gain_percent:.1f}% gain)"
            for h in investments.holdings
        ]

    if cash.top_expense_categories:
        lines += ["", "TOP EXPENSE CATEGORIES:"]
        lines += [
            f"- {c.category}: {_money(currency_symbol, c.amount)} ({c.percentage:.1f}%)"
            for c in cash.top_expense_categories
        ]

    lines += [
        "",
        "FINANCIAL HEALTH METRICS (approximate):",
        f"- Emergency Fund: {health.emergency_fund_months:.1f} months of expenses",
        f"- Investment Ratio: {health.investment_ratio:.1f}%",
        f"- Estimated Tax Liability: {_money(currency_symbol, summary.taxes.estimated_tax_liability)}"
        f" at {summary.taxes.tax_rate:.0f}%",
    ]

    if summary.goals_progress:
        lines += ["", "GOALS PROGRESS:"]
        lines += [
            f"- {g.goal}: {g.progress_percent:.1f}% complete"
            f" ({_money(currency_symbol, g.current_amount)} / {_money(currency_symbol, g.target_amount)})"
            for g in summary.goals_progress
        ]

    return "\n".join(lines)
