import json
import logging
import sys
from datetime import datetime

from constants import DEFAULT_ANNUAL_INCOME, DEFAULT_USD_KRW
from dsr import compute_dsr, max_additional_principal
from financial_structs import Holding, holdings_from_records
from portfolio import allocation_breakdown, compute_history, compute_stats
from visualizer import Visualizer


def sample_household():
    # Hardcoded for demo, this is where stored records come in
    return [
        Holding("생활비 통장", "CASH", 15_000_000, owner="Shared", created_at=datetime(2024, 1, 5)),
        Holding("Apple", "STOCK", 40, owner="OwnerA", avg_price=170, current_price=228,
                ticker="AAPL", country="미국", currency="USD", created_at=datetime(2024, 3, 2)),
        Holding("삼성전자", "STOCK", 120, owner="OwnerB", avg_price=72_000, current_price=61_000,
                ticker="005930", country="한국", currency="KRW", created_at=datetime(2024, 6, 11)),
        Holding("퇴직연금 S&P500", "PENSION", 300, owner="OwnerA", avg_price=14_000, current_price=19_500,
                ticker="360750", country="한국", currency="KRW", created_at=datetime(2023, 9, 1)),
        Holding("BTC", "VIRTUAL_ASSET", 0.05, owner="OwnerB", avg_price=60_000_000, current_price=95_000_000,
                ticker="BTC", created_at=datetime(2024, 11, 20)),
        Holding("아파트", "REAL_ESTATE", 650_000_000, owner="Shared", purchase_price=520_000_000,
                address="서울시", created_at=datetime(2022, 4, 30)),
        Holding("주택담보대출", "LOAN", 300_000_000, owner="Shared", interest_rate=4.2,
                loan_period_months=360, repayment_type="원리금균등분할상환", loan_type="주택담보대출",
                created_at=datetime(2022, 4, 30)),
        Holding("신용대출", "LOAN", 30_000_000, owner="OwnerA", interest_rate=5.5,
                loan_period_months=12, repayment_type="만기일시상환", loan_type="신용대출",
                created_at=datetime(2024, 8, 1)),
        Holding("전세자금대출", "LOAN", 100_000_000, owner="OwnerB", interest_rate=3.8,
                loan_period_months=24, repayment_type="만기일시상환", is_dsr_excluded=True,
                created_at=datetime(2023, 2, 14)),
    ]


def load_holdings(path):
    with open(path, encoding="utf-8") as f:
        return holdings_from_records(json.load(f))


def print_report(holdings, exchange_rate=DEFAULT_USD_KRW, annual_income=DEFAULT_ANNUAL_INCOME):
    stats = compute_stats(holdings, exchange_rate)
    print(f"--- Household Report (USD/KRW {exchange_rate:,.2f}) ---")
    print(f"Total Assets:      {stats.total_assets:>18,.0f}")
    print(f"Total Liabilities: {stats.total_liabilities:>18,.0f}")
    print(f"Net Worth:         {stats.net_worth:>18,.0f}")
    print(f"Total Profit:      {stats.total_profit:>18,.0f} ({stats.total_roi_percent:+.2f}%)")

    print("\n--- Net Worth History (approximated) ---")
    history = compute_history(holdings, exchange_rate)
    for point in history:
        print(f"{point.period_label}: {point.net_worth:,.0f}")

    print("\n--- Allocation ---")
    for group, value in allocation_breakdown(holdings, exchange_rate).items():
        print(f"{group}: {value:,.0f}")

    print(f"\n--- DSR (income {annual_income:,.0f}) ---")
    dsr = compute_dsr(holdings, annual_income)
    print(f"DSR: {dsr.ratio_percent:.2f}% (limit {dsr.limit_percent}%){'  EXCEEDED' if dsr.is_exceeded else ''}")
    print(f"Annual debt service: {dsr.total_annual_debt_service:,.0f}")
    for s in dsr.included_loans:
        print(f"  {s.loan.name}: {s.annual_debt_service:,.0f}/yr, {s.monthly_payment:,.0f}/mo")
    for loan in dsr.excluded_loans:
        print(f"  (excluded) {loan.name}")
    print(f"Remaining capacity: {dsr.available_additional_annual_capacity:,.0f}/yr")
    print(f"  ~ {max_additional_principal(dsr, 4.5, 360):,.0f} more at 4.5% over 30 years")

    return stats, history, dsr


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s %(message)s")

    holdings = load_holdings(sys.argv[1]) if len(sys.argv) > 1 else sample_household()
    stats, history, dsr = print_report(holdings)

    Visualizer.plot_history(history)
    Visualizer.plot_allocation(allocation_breakdown(holdings, DEFAULT_USD_KRW))
    Visualizer.plot_dsr_gauge(dsr)
    print("\n--- Charts written to the current folder ---")
