# dsr.py
from dataclasses import dataclass, field
from typing import List

from constants import BANK_LIMIT_PERCENTAGE
from financial_structs import Holding, InvalidInputError, RepaymentType
from loan_calculator import annual_debt_service, monthly_payment


@dataclass(frozen=True)
class LoanDebtService:
    loan: Holding
    annual_debt_service: float
    monthly_payment: float


@dataclass(frozen=True)
class DsrResult:
    ratio_percent: float
    total_annual_debt_service: float
    is_exceeded: bool
    available_additional_annual_capacity: float
    annual_income: float
    limit_percent: float = BANK_LIMIT_PERCENTAGE
    included_loans: List[LoanDebtService] = field(default_factory=list)
    excluded_loans: List[Holding] = field(default_factory=list)


def partition_loans(holdings):
    """Splits the loans in `holdings` into (DSR-included, DSR-excluded). Non-loans are ignored."""
    loans = [h for h in holdings if h.is_loan]
    included = [l for l in loans if not l.is_dsr_excluded]
    excluded = [l for l in loans if l.is_dsr_excluded]
    return included, excluded


def compute_dsr(holdings, annual_income, limit_percent=BANK_LIMIT_PERCENTAGE):
    """
    DSR = (annual principal+interest of every included loan) / annual income * 100.

    Loans flagged is_dsr_excluded (jeonse loans, policy mortgages, small credit
    lines, ...) are reported but never counted.
    """
    if annual_income is None or annual_income < 0:
        raise InvalidInputError(f"Annual income must be >= 0, got {annual_income}")

    included, excluded = partition_loans(holdings)
    services = [LoanDebtService(l, annual_debt_service(l), monthly_payment(l)) for l in included]
    total = sum(s.annual_debt_service for s in services)

    ratio = (total / annual_income) * 100 if annual_income > 0 else 0.0
    is_exceeded = ratio > limit_percent
    if is_exceeded:
        capacity = 0.0
    else:
        capacity = max(0.0, annual_income * (limit_percent / 100) - total)

    return DsrResult(
        ratio_percent=ratio,
        total_annual_debt_service=total,
        is_exceeded=is_exceeded,
        available_additional_annual_capacity=capacity,
        annual_income=annual_income,
        limit_percent=limit_percent,
        included_loans=services,
        excluded_loans=excluded,
    )


def max_additional_principal(dsr_result, interest_rate, loan_period_months,
                             repayment=RepaymentType.AMORTIZING):
    """
    Largest new principal whose DSR annual debt service fits in the remaining capacity.
    Annual debt service is linear in principal, so one unit loan is enough to invert it.
    """
    if dsr_result.available_additional_annual_capacity <= 0:
        return 0.0
    unit_loan = Holding(
        name="new loan",
        category="LOAN",
        amount=1.0,
        interest_rate=interest_rate,
        loan_period_months=loan_period_months,
        repayment_type=repayment,
    )
    per_won = annual_debt_service(unit_loan)
    return dsr_result.available_additional_annual_capacity / per_won
