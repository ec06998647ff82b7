"""
Display configuration per portfolio.
Lookup table used by the Streamlit layer only; the accounting engine never
reads it.
"""

from dataclasses import dataclass
from typing import List, Optional


@dataclass(frozen=True)
class PortfolioConfig:
    """Label, icon and accent colours for a portfolio tab."""
    id: str
    label: str
    icon: str
    primary_color: str
    accent_color: str


PORTFOLIOS: List[PortfolioConfig] = [
    PortfolioConfig(
        id="main",
        label="Main Investment",
        icon="💼",
        primary_color="#2563eb",
        accent_color="#60a5fa",
    ),
    PortfolioConfig(
        id="trading",
        label="Trading / Scalping",
        icon="⚡",
        primary_color="#9333ea",
        accent_color="#c084fc",
    ),
]


def get_portfolio_config(portfolio_id: Optional[str]) -> PortfolioConfig:
    """Config for the given id, falling back to the first portfolio."""
    for portfolio in PORTFOLIOS:
        if portfolio.id == portfolio_id:
            return portfolio
    return PORTFOLIOS[0]


def portfolio_ids() -> List[str]:
    return [p.id for p in PORTFOLIOS]
