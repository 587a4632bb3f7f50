# financial_structs.py
import math
import numbers
from dataclasses import dataclass, replace
from datetime import date, datetime, time, timezone
from enum import Enum
from typing import Optional

from constants import MAN_WON, USD_COUNTRY_NAMES


class InvalidInputError(ValueError):
    """Raised when a holding, rate or income cannot be used for a calculation."""


class Category(str, Enum):
    CASH = "CASH"
    PENSION = "PENSION"
    STOCK = "STOCK"
    VIRTUAL_ASSET = "VIRTUAL_ASSET"
    REAL_ESTATE = "REAL_ESTATE"
    LOAN = "LOAN"


class Owner(str, Enum):
    OWNER_A = "OwnerA"
    OWNER_B = "OwnerB"
    SHARED = "Shared"


class RepaymentType(str, Enum):
    BULLET = "만기일시상환"
    AMORTIZING = "원리금균등분할상환"


class LoanType(str, Enum):
    CREDIT = "신용대출"
    MORTGAGE = "주택담보대출"
    OVERDRAFT = "마이너스통장"


# Single source of truth for category-dependent rules
INVESTMENT_CATEGORIES = frozenset({Category.STOCK, Category.PENSION, Category.VIRTUAL_ASSET})
COST_BASIS_CATEGORIES = INVESTMENT_CATEGORIES | {Category.REAL_ESTATE}
SCALED_UNIT_CATEGORIES = frozenset({Category.REAL_ESTATE, Category.LOAN})


def is_investment_category(category):
    return category in INVESTMENT_CATEGORIES


def is_loan_category(category):
    return category == Category.LOAN


def has_cost_basis(category):
    """Investments and real estate carry a principal that profit is measured against."""
    return category in COST_BASIS_CATEGORIES


@dataclass(frozen=True)
class Holding:
    """
    Immutable snapshot of one asset or loan.

    Monetary fields on CASH / REAL_ESTATE / LOAN are in KRW (won). For
    investment categories `amount` is a unit count and prices are quoted in
    `currency`.
    """
    name: str
    category: Category
    amount: float
    owner: Owner = Owner.SHARED
    id: Optional[str] = None
    current_price: Optional[float] = None

    # Investment
    avg_price: Optional[float] = None
    ticker: Optional[str] = None
    country: Optional[str] = None
    currency: Optional[str] = None

    # Real estate
    purchase_price: Optional[float] = None
    address: Optional[str] = None

    # Loan
    interest_rate: Optional[float] = None  # Annual %, 4.5 == 4.5%
    loan_period_months: Optional[int] = None
    repayment_type: Optional[RepaymentType] = None
    loan_type: Optional[LoanType] = None
    is_dsr_excluded: bool = False

    created_at: Optional[datetime] = None

    def __post_init__(self):
        object.__setattr__(self, "category", parse_category(self.category))
        object.__setattr__(self, "owner", parse_owner(self.owner))
        if self.repayment_type is not None:
            object.__setattr__(self, "repayment_type", parse_repayment_type(self.repayment_type))
        if self.loan_type is not None:
            object.__setattr__(self, "loan_type", _parse_enum(LoanType, self.loan_type, "loan type"))
        if self.created_at is not None:
            object.__setattr__(self, "created_at", _naive_utc(self.created_at))

        _check_non_negative(self.name, "amount", self.amount)
        for field_name in ("current_price", "avg_price", "purchase_price", "interest_rate", "loan_period_months"):
            value = getattr(self, field_name)
            if value is not None:
                _check_non_negative(self.name, field_name, value)
        if self.loan_period_months is not None:
            if not float(self.loan_period_months).is_integer():
                raise InvalidInputError(f"{self.name}: loan_period_months must be whole months, "
                                        f"got {self.loan_period_months}")
            object.__setattr__(self, "loan_period_months", int(self.loan_period_months))

    @property
    def is_investment(self):
        return is_investment_category(self.category)

    @property
    def is_loan(self):
        return is_loan_category(self.category)

    def with_quote(self, price, currency=None):
        """Returns a copy carrying a fresh market price (and currency, when the quote knows it)."""
        return replace(self, current_price=price, currency=currency or self.currency)


# --- Parsing helpers ---

def _check_non_negative(name, field_name, value):
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise InvalidInputError(f"{name}: {field_name} must be a number, got {value!r}")
    if not math.isfinite(value) or value < 0:
        raise InvalidInputError(f"{name}: {field_name} must be a finite number >= 0, got {value}")


def _parse_enum(enum_cls, value, label):
    if isinstance(value, enum_cls):
        return value
    for member in enum_cls:
        if value == member.value or value == member.name:
            return member
    raise InvalidInputError(f"Unknown {label}: {value!r}")


def parse_category(value):
    return _parse_enum(Category, value, "category")


def parse_owner(value):
    return _parse_enum(Owner, value, "owner")


def parse_repayment_type(value):
    return _parse_enum(RepaymentType, value, "repayment type")


def _naive_utc(value):
    if isinstance(value, str):
        value = datetime.fromisoformat(value.replace("Z", "+00:00"))
    elif not isinstance(value, datetime) and isinstance(value, date):
        value = datetime.combine(value, time.min)
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def infer_currency(currency, country):
    if currency:
        return currency.upper()
    if country in USD_COUNTRY_NAMES:
        return "USD"
    return None


def holding_from_record(record, scaled_units=True):
    """
    Builds a Holding from a stored record (flat fields plus a nested 'metadata' dict).

    This is the only place unit conventions are resolved: with scaled_units,
    REAL_ESTATE and LOAN amounts (and purchase prices) arrive in 만원 and are
    converted to won here.
    """
    meta = record.get("metadata") or {}
    category = parse_category(record["category"])

    amount = record.get("amount", 0)
    purchase_price = meta.get("purchase_price")
    if scaled_units and category in SCALED_UNIT_CATEGORIES:
        _check_non_negative(record.get("name", ""), "amount", amount)
        amount = amount * MAN_WON
        if purchase_price is not None:
            _check_non_negative(record.get("name", ""), "purchase_price", purchase_price)
            purchase_price = purchase_price * MAN_WON

    country = meta.get("country")
    return Holding(
        id=record.get("id"),
        name=record.get("name", ""),
        category=category,
        owner=record.get("owner", Owner.SHARED),
        amount=amount,
        current_price=record.get("current_price"),
        avg_price=meta.get("avg_price"),
        ticker=meta.get("ticker"),
        country=country,
        currency=infer_currency(record.get("currency") or meta.get("currency"), country),
        purchase_price=purchase_price,
        address=meta.get("address"),
        interest_rate=meta.get("interest_rate"),
        loan_period_months=meta.get("loan_period"),
        repayment_type=meta.get("repayment_type"),
        loan_type=meta.get("loan_type"),
        is_dsr_excluded=bool(meta.get("is_dsr_excluded", False)),
        created_at=record.get("created_at") or record.get("updated_at"),
    )


def holdings_from_records(records, scaled_units=True):
    return [holding_from_record(r, scaled_units=scaled_units) for r in records]
