"""
Pure calculations behind the financial summary.

Every function here takes plain lists of records and returns derived numbers;
no I/O. Percentages are rounded to 2 decimals.
"""

from collections import defaultdict
from collections.abc import Iterable

from ..models.financial_summary import (
    CategoryTotal,
    FinancialHealth,
    GoalProgress,
    HoldingPerformance,
    InvestmentMetrics,
    MonthlyCashFlow,
    TaxEstimate,
    TransactionMetrics,
)
from ..models.holding import Holding
from ..models.transaction import Transaction
from .utils.date_utils import month_key

MAX_MONTHS = 12
MAX_CATEGORIES = 5
TAX_REFUND_CATEGORY = "Tax Refund"

RISK_TOLERANCE_LABELS = {
    1: "Conservative",
    2: "Cautious",
    3: "Balanced",
    4: "Growth",
    5: "Aggressive",
}

INVESTMENT_STYLES = {
    "Student": "Learning and conservative",
    "Professional": "Growth-oriented",
}


def gain_percent(value: float, gain: float) -> float:
    """
    Gain as a percentage of the amount originally invested (value - gain).

    Returns 0.0 when nothing was invested, i.e. the denominator is zero.

    Examples:
        >>> gain_percent(1000, 100)
        11.11
        >>> gain_percent(100, 100)
        0.0
    """
    invested = value - gain
    if invested == 0:
        return 0.0
    return round(gain / invested * 100, 2)


def _share(amount: float, total: float) -> float:
    return round(amount / total * 100, 2) if total else 0.0


def _top_categories(totals: dict[str, float], grand_total: float) -> list[CategoryTotal]:
    ranked = sorted(totals.items(), key=lambda item: item[1], reverse=True)
    return [
        CategoryTotal(
            category=category,
            amount=round(amount, 2),
            percentage=_share(amount, grand_total),
        )
        for category, amount in ranked[:MAX_CATEGORIES]
    ]


def calculate_transaction_metrics(transactions: Iterable[Transaction]) -> TransactionMetrics:
    """Cash-flow totals, monthly breakdown and top categories."""
    total_income = 0.0
    total_expenses = 0.0
    monthly: dict[str, MonthlyCashFlow] = {}
    income_by_category: dict[str, float] = defaultdict(float)
    expenses_by_category: dict[str, float] = defaultdict(float)

    for tx in transactions:
        key = month_key(tx.date)
        bucket = monthly.setdefault(key, MonthlyCashFlow(month=key))

        if tx.amount > 0:
            total_income += tx.amount
            bucket.income += tx.amount
            income_by_category[tx.category] += tx.amount
        elif tx.amount < 0:
            spent = abs(tx.amount)
            total_expenses += spent
            bucket.expenses += spent
            expenses_by_category[tx.category] += spent

        bucket.net_flow = bucket.income - bucket.expenses

    breakdown = sorted(monthly.values(), key=lambda b: b.month, reverse=True)[:MAX_MONTHS]

    return TransactionMetrics(
        total_income=round(total_income, 2),
        total_expenses=round(total_expenses, 2),
        net_cash_flow=round(total_income - total_expenses, 2),
        monthly_breakdown=breakdown,
        top_income_sources=_top_categories(income_by_category, total_income),
        top_expense_categories=_top_categories(expenses_by_category, total_expenses),
    )


def calculate_investment_metrics(holdings: Iterable[Holding]) -> InvestmentMetrics:
    """Portfolio totals and per-holding performance."""
    holdings = list(holdings)
    total_value = sum(h.value for h in holdings)
    total_gain = sum(h.gain for h in holdings)

    return InvestmentMetrics(
        total_portfolio_value=round(total_value, 2),
        total_gain=round(total_gain, 2),
        total_gain_percent=gain_percent(total_value, total_gain) if holdings else 0.0,
        holdings=[
            HoldingPerformance(
                ticker=h.ticker,
                value=h.value,
                gain=h.gain,
                gain_percent=gain_percent(h.value, h.gain),
            )
            for h in holdings
        ],
    )


def calculate_tax_estimate(
    transactions: Iterable[Transaction], tax_rate: float
) -> TaxEstimate:
    """Flat-rate estimate over positive amounts, tax refunds excluded."""
    taxable = sum(
        tx.amount
        for tx in transactions
        if tx.amount > 0 and tx.category != TAX_REFUND_CATEGORY
    )
    return TaxEstimate(
        total_taxable_income=round(taxable, 2),
        estimated_tax_liability=round(taxable * tax_rate / 100, 2),
        tax_rate=tax_rate,
    )


def calculate_financial_health(
    transaction_metrics: TransactionMetrics,
    investment_metrics: InvestmentMetrics,
) -> FinancialHealth:
    """
    Approximate health indicators.

    Emergency-fund months treat the positive net cash flow as the savings
    pool and divide it by the average monthly expenses over the months seen.
    """
    income = transaction_metrics.total_income
    months_seen = max(len(transaction_metrics.monthly_breakdown), 1)
    monthly_expenses = transaction_metrics.total_expenses / months_seen
    savings_pool = max(transaction_metrics.net_cash_flow, 0.0)

    return FinancialHealth(
        emergency_fund_months=(
            round(savings_pool / monthly_expenses, 1) if monthly_expenses > 0 else 0.0
        ),
        savings_rate=_share(transaction_metrics.net_cash_flow, income),
        investment_ratio=_share(investment_metrics.total_portfolio_value, income),
    )


def calculate_goals_progress(
    goals: str, current_amount: float, target_amount: float
) -> list[GoalProgress]:
    """One progress entry per comma-separated goal, capped at 100%."""
    goal_list = [goal.strip() for goal in goals.split(",") if goal.strip()]
    progress = min(_share(current_amount, target_amount), 100.0)
    return [
        GoalProgress(
            goal=goal,
            target_amount=target_amount,
            current_amount=current_amount,
            progress_percent=progress,
        )
        for goal in goal_list
    ]


def describe_risk_tolerance(risk_tolerance: int | None) -> str:
    return RISK_TOLERANCE_LABELS.get(risk_tolerance or 0, "Balanced")


def describe_investment_style(persona: str) -> str:
    return INVESTMENT_STYLES.get(persona, "Balanced")
