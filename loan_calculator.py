# loan_calculator.py
from dataclasses import dataclass

import numpy as np
import pandas as pd

from constants import DEFAULT_LOAN_PERIOD_MONTHS
from financial_structs import InvalidInputError, RepaymentType


@dataclass(frozen=True)
class LoanSchedule:
    monthly_payment: float
    annual_debt_service: float


def _require_loan(loan):
    if not loan.is_loan:
        raise InvalidInputError(f"{loan.name}: expected a LOAN holding, got {loan.category.value}")


def loan_months(loan):
    return loan.loan_period_months or DEFAULT_LOAN_PERIOD_MONTHS


def monthly_rate(loan):
    return (loan.interest_rate or 0) / 100 / 12


def repayment_type(loan):
    # Unspecified loans are treated as equal principal+interest installments
    return loan.repayment_type or RepaymentType.AMORTIZING


def amortizing_payment(principal, rate, months):
    """Level payment for `months` periods at periodic `rate`."""
    if rate == 0:
        return principal / months
    growth = (1 + rate) ** months
    return principal * rate * growth / (growth - 1)


def monthly_payment(loan):
    """
    Expected monthly payment shown next to a loan.

    Bullet loans pay interest only; the principal is due at maturity and is
    not part of this figure. For DSR use annual_debt_service instead.
    """
    _require_loan(loan)
    if not loan.interest_rate:
        return 0.0

    principal = loan.amount
    rate = monthly_rate(loan)
    if repayment_type(loan) == RepaymentType.BULLET:
        return principal * rate
    return amortizing_payment(principal, rate, loan_months(loan))


def annual_debt_service(loan):
    """
    Annual principal+interest counted toward DSR.

    Bullet: principal spread evenly over the term plus a full year of interest.
    Amortizing: twelve level payments.
    """
    _require_loan(loan)
    principal = loan.amount
    months = loan_months(loan)
    years = months / 12
    annual_rate = (loan.interest_rate or 0) / 100

    if repayment_type(loan) == RepaymentType.BULLET:
        return principal / years + principal * annual_rate

    rate = annual_rate / 12
    if rate == 0:
        return principal / years
    return amortizing_payment(principal, rate, months) * 12


def loan_schedule(loan):
    return LoanSchedule(monthly_payment(loan), annual_debt_service(loan))


def repayment_schedule(loan):
    """Month-by-month interest / principal / remaining balance over the full term."""
    _require_loan(loan)
    months = loan_months(loan)
    rate = monthly_rate(loan)
    balance = float(loan.amount)
    is_bullet = repayment_type(loan) == RepaymentType.BULLET
    level_payment = amortizing_payment(balance, rate, months)

    rows = []
    for m in range(1, months + 1):
        interest = balance * rate
        if is_bullet:
            principal_pay = balance if m == months else 0.0
        else:
            principal_pay = min(level_payment - interest, balance)
        balance -= principal_pay
        rows.append({
            'month': m,
            'payment': interest + principal_pay,
            'interest': interest,
            'principal': principal_pay,
            'balance': balance,
        })

    df = pd.DataFrame(rows).set_index('month')
    # Float drift on the last installment
    df['balance'] = np.where(np.isclose(df['balance'], 0.0, atol=1e-6), 0.0, df['balance'])
    return df
