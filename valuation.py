# valuation.py
from dataclasses import dataclass

from currency import holding_to_krw
from financial_structs import Category, has_cost_basis


@dataclass(frozen=True)
class AssetValuation:
    current_value: float  # KRW
    profit_amount: float  # KRW
    profit_rate_percent: float
    native_value: float  # In the holding's own currency
    native_profit: float
    cost_basis: float  # KRW


def unit_price(holding):
    """currentPrice, then avgPrice, then 0."""
    if holding.current_price is not None:
        return holding.current_price
    if holding.avg_price is not None:
        return holding.avg_price
    return 0


def current_value(holding):
    """Market value in the holding's own currency. Loans report their outstanding magnitude."""
    if holding.is_investment:
        return unit_price(holding) * holding.amount
    return holding.amount


def cost_basis(holding):
    if holding.is_investment:
        return (holding.avg_price or 0) * holding.amount
    if holding.category == Category.REAL_ESTATE:
        return holding.purchase_price or 0
    return 0


def _rate_of_change(current, base):
    if not base:
        return 0.0
    return ((current - base) / base) * 100


def profit_rate_percent(holding):
    if holding.is_investment:
        return _rate_of_change(unit_price(holding), holding.avg_price or 0)
    if holding.category == Category.REAL_ESTATE:
        return _rate_of_change(holding.amount, holding.purchase_price or 0)
    return 0.0


def value_holding(holding, exchange_rate, market_variance=1.0):
    """
    Values one holding in KRW.

    market_variance scales the current value of investments only; cost basis is
    never scaled. Both sides go through the same currency conversion so profit
    stays consistent.
    """
    native = current_value(holding)
    if holding.is_investment:
        native = native * market_variance

    value_krw = holding_to_krw(holding, native, exchange_rate)

    if not has_cost_basis(holding.category):
        return AssetValuation(value_krw, 0.0, 0.0, native, 0.0, 0.0)

    native_basis = cost_basis(holding)
    basis_krw = holding_to_krw(holding, native_basis, exchange_rate)
    rate = profit_rate_percent(holding) if market_variance == 1.0 else _rate_of_change(native, native_basis)
    return AssetValuation(
        current_value=value_krw,
        profit_amount=value_krw - basis_krw,
        profit_rate_percent=rate,
        native_value=native,
        native_profit=native - native_basis,
        cost_basis=basis_krw,
    )
