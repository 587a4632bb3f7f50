# portfolio.py
import logging
import math
from dataclasses import asdict, dataclass, fields
from datetime import datetime
from enum import Enum

import numpy as np
import pandas as pd

from constants import HISTORY_MONTHS_COUNT, MARKET_VARIANCE_FACTOR, UNKNOWN_COUNTRY_LABEL
from currency import validate_exchange_rate
from financial_structs import Category, InvalidInputError, has_cost_basis, parse_owner
from valuation import value_holding

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PortfolioStats:
    total_assets: float
    total_liabilities: float
    net_worth: float
    total_profit: float
    total_roi_percent: float


@dataclass(frozen=True)
class HistoryPoint:
    period_label: str
    net_worth: float
    total_assets: float
    total_liabilities: float
    total_profit: float
    total_roi_percent: float


class DashboardView(str, Enum):
    DASHBOARD = "dashboard"
    REAL_ESTATE = "real-estate"
    PENSION = "pension"
    CRYPTO = "crypto"
    STOCK = "stock"


VIEW_CATEGORIES = {
    DashboardView.DASHBOARD: None,  # Everything
    DashboardView.REAL_ESTATE: {Category.REAL_ESTATE, Category.LOAN},
    DashboardView.PENSION: {Category.PENSION},
    DashboardView.CRYPTO: {Category.VIRTUAL_ASSET},
    DashboardView.STOCK: {Category.STOCK},
}


def filter_holdings(holdings, owner=None, view=DashboardView.DASHBOARD):
    """owner=None means the household total."""
    if owner is not None:
        owner = parse_owner(owner)
    categories = VIEW_CATEGORIES[DashboardView(view)]
    return [
        h for h in holdings
        if (owner is None or h.owner == owner)
        and (categories is None or h.category in categories)
    ]


def _aggregate(holdings, exchange_rate, market_variance=1.0):
    total_assets = 0.0
    total_liabilities = 0.0
    total_profit = 0.0
    total_principal = 0.0

    for h in holdings:
        val = value_holding(h, exchange_rate, market_variance)
        if h.is_loan:
            total_liabilities += val.current_value
            continue
        total_assets += val.current_value
        if has_cost_basis(h.category):
            total_principal += val.cost_basis
            total_profit += val.profit_amount

    return PortfolioStats(
        total_assets=total_assets,
        total_liabilities=total_liabilities,
        net_worth=total_assets - total_liabilities,
        total_profit=total_profit,
        total_roi_percent=(total_profit / total_principal) * 100 if total_principal > 0 else 0.0,
    )


def compute_stats(holdings, exchange_rate, owner=None, view=DashboardView.DASHBOARD):
    validate_exchange_rate(exchange_rate)
    return _aggregate(filter_holdings(holdings, owner, view), exchange_rate)


def _existed_by(holding, cutoff):
    # Holdings without a creation stamp are treated as always held
    return holding.created_at is None or holding.created_at <= cutoff


def _local_zone():
    return datetime.now().astimezone().tzinfo


def _month_end_utc(period, zone):
    # created_at is stored as naive UTC, so the local month end is moved onto the same clock
    return period.end_time.tz_localize(zone).tz_convert("UTC").tz_localize(None)


def compute_history(holdings, exchange_rate, months_count=HISTORY_MONTHS_COUNT,
                    variance_factor=MARKET_VARIANCE_FACTOR, as_of=None,
                    owner=None, view=DashboardView.DASHBOARD, tz=None):
    """
    Replays the aggregation for the last `months_count` months, oldest first.

    There is no stored price history: each month keeps only holdings created
    by its month end and discounts investment values by 1 - i * variance_factor
    (i months back). The curve is a smoothed approximation, not real pricing.

    Month boundaries are calendar months in `tz` (the machine's local zone
    when None). A naive `as_of` is read as wall time in that zone.
    """
    validate_exchange_rate(exchange_rate)
    if months_count is None or months_count < 1:
        raise InvalidInputError(f"months_count must be >= 1, got {months_count}")
    if (variance_factor is None or not math.isfinite(variance_factor) or variance_factor < 0
            or (months_count - 1) * variance_factor > 1):
        raise InvalidInputError(
            f"variance_factor must be in [0, 1 / (months_count - 1)], got {variance_factor}")

    zone = tz if tz is not None else _local_zone()
    now = pd.Timestamp.now(tz=zone) if as_of is None else pd.Timestamp(as_of)
    if now.tzinfo is not None:
        now = now.tz_convert(zone).tz_localize(None)
    current = pd.Period(now, freq="M")
    scoped = filter_holdings(holdings, owner, view)
    months_back = np.arange(months_count - 1, -1, -1)
    variances = 1 - months_back * variance_factor

    history = []
    for i, variance in zip(months_back, variances):
        period = current - int(i)
        cutoff = _month_end_utc(period, zone)
        alive = [h for h in scoped if _existed_by(h, cutoff)]
        stats = _aggregate(alive, exchange_rate, float(variance))
        history.append(HistoryPoint(period_label=period.strftime("%Y.%m"), **asdict(stats)))

    logger.debug("Projected %d months ending %s over %d holdings", months_count, current, len(scoped))
    return history


def history_to_frame(history):
    if not history:
        return pd.DataFrame(columns=[f.name for f in fields(HistoryPoint)]).set_index('period_label')
    return pd.DataFrame([asdict(p) for p in history]).set_index('period_label')


def allocation_breakdown(holdings, exchange_rate, group_by="category"):
    """KRW value per category, country or name, largest first."""
    validate_exchange_rate(exchange_rate)
    if group_by not in ("category", "country", "name"):
        raise InvalidInputError(f"Unknown grouping: {group_by!r}")

    rows = []
    for h in holdings:
        if group_by == "category":
            key = h.category.value
        elif group_by == "country":
            key = h.country or UNKNOWN_COUNTRY_LABEL
        else:
            key = h.name
        rows.append({'group': key, 'value': value_holding(h, exchange_rate).current_value})

    if not rows:
        return pd.Series(dtype=float, name='value')
    df = pd.DataFrame(rows)
    return df.groupby('group')['value'].sum().sort_values(ascending=False)
