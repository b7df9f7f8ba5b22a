"""
Financial summary models.

Derived, read-only view over a user's profile, transactions and holdings.
Health metrics are approximate indicators, not exact accounting.
"""

from pydantic import BaseModel, Field


class ProfileSnapshot(BaseModel):
    persona: str
    age: int | None = None
    income: str = ""
    goals: str = ""
    risk_tolerance: int | None = None
    time_horizon: str = ""
    country: str = ""
    currency: str = ""


class HoldingPerformance(BaseModel):
    ticker: str
    value: float
    gain: float
    gain_percent: float


class InvestmentMetrics(BaseModel):
    total_portfolio_value: float = 0.0
    total_gain: float = 0.0
    total_gain_percent: float = 0.0
    holdings: list[HoldingPerformance] = Field(default_factory=list)


class MonthlyCashFlow(BaseModel):
    month: str = Field(..., description="YYYY-MM")
    income: float = 0.0
    expenses: float = 0.0
    net_flow: float = 0.0


class CategoryTotal(BaseModel):
    category: str
    amount: float
    percentage: float = Field(..., description="Share of the respective total (%)")


class TransactionMetrics(BaseModel):
    total_income: float = 0.0
    total_expenses: float = 0.0
    net_cash_flow: float = 0.0
    monthly_breakdown: list[MonthlyCashFlow] = Field(default_factory=list)
    top_income_sources: list[CategoryTotal] = Field(default_factory=list)
    top_expense_categories: list[CategoryTotal] = Field(default_factory=list)


class TaxEstimate(BaseModel):
    total_taxable_income: float = 0.0
    estimated_tax_liability: float = 0.0
    tax_rate: float = 0.0


class FinancialHealth(BaseModel):
    """Advisory indicators; callers must not treat them as authoritative."""

    emergency_fund_months: float = 0.0
    savings_rate: float = 0.0
    investment_ratio: float = 0.0


class GoalProgress(BaseModel):
    goal: str
    target_amount: float
    current_amount: float
    progress_percent: float


class FinancialSummary(BaseModel):
    """Everything the chat assistant knows about a user's finances."""

    user_profile: ProfileSnapshot
    investments: InvestmentMetrics
    transactions: TransactionMetrics
    taxes: TaxEstimate
    financial_health: FinancialHealth
    goals_progress: list[GoalProgress] = Field(default_factory=list)
    risk_tolerance_label: str = "Balanced"
    investment_style: str = "Balanced"
