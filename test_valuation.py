import unittest
from datetime import datetime

from currency import is_usd_denominated, to_reporting_currency
from financial_structs import (Category, Holding, InvalidInputError, Owner, RepaymentType,
                               holding_from_record, is_investment_category, is_loan_category)
from valuation import current_value, profit_rate_percent, unit_price, value_holding


class TestCurrencyNormalizer(unittest.TestCase):

    def test_usd_is_converted(self):
        self.assertEqual(to_reporting_currency(100, "USD", 1400), 140000)

    def test_krw_passes_through(self):
        self.assertEqual(to_reporting_currency(100, "KRW", 1400), 100)
        self.assertEqual(to_reporting_currency(100, None, 1400), 100)

    def test_country_is_fallback_only(self):
        self.assertTrue(is_usd_denominated(None, "미국"))
        self.assertTrue(is_usd_denominated(None, "US"))
        # Explicit currency wins over country
        self.assertFalse(is_usd_denominated("KRW", "미국"))

    def test_non_positive_rate_rejected(self):
        for bad in (0, -1, None):
            with self.assertRaises(InvalidInputError):
                to_reporting_currency(100, "USD", bad)
        # Even KRW values need a valid rate, so bad input never looks like data
        with self.assertRaises(InvalidInputError):
            to_reporting_currency(100, "KRW", 0)

    def test_non_finite_rate_rejected(self):
        for bad in (float("inf"), float("nan")):
            with self.assertRaises(InvalidInputError):
                to_reporting_currency(100, "USD", bad)


class TestHolding(unittest.TestCase):

    def test_negative_amount_rejected(self):
        with self.assertRaises(InvalidInputError):
            Holding("Cash", "CASH", -1)

    def test_negative_terms_rejected(self):
        with self.assertRaises(InvalidInputError):
            Holding("Stock", "STOCK", 1, avg_price=-5)
        with self.assertRaises(InvalidInputError):
            Holding("Loan", "LOAN", 1000, interest_rate=-0.1)
        with self.assertRaises(InvalidInputError):
            Holding("Loan", "LOAN", 1000, loan_period_months=-12)

    def test_non_finite_values_rejected(self):
        nan, inf = float("nan"), float("inf")
        with self.assertRaises(InvalidInputError):
            Holding("Cash", "CASH", nan)
        with self.assertRaises(InvalidInputError):
            Holding("Cash", "CASH", inf)
        with self.assertRaises(InvalidInputError):
            Holding("Stock", "STOCK", 1, current_price=nan)
        with self.assertRaises(InvalidInputError):
            Holding("Loan", "LOAN", 1000, interest_rate=inf)
        # A fresh quote goes through the same checks
        with self.assertRaises(InvalidInputError):
            Holding("Stock", "STOCK", 1, avg_price=10).with_quote(nan)

    def test_non_numeric_values_rejected(self):
        with self.assertRaises(InvalidInputError):
            Holding("Cash", "CASH", "1000")
        with self.assertRaises(InvalidInputError):
            Holding("Stock", "STOCK", 1, avg_price="cheap")
        with self.assertRaises(InvalidInputError):
            holding_from_record({"name": "Loan", "category": "LOAN", "amount": "lots"})

    def test_loan_period_must_be_whole_months(self):
        self.assertEqual(Holding("Loan", "LOAN", 1, loan_period_months=24.0).loan_period_months, 24)
        with self.assertRaises(InvalidInputError):
            Holding("Loan", "LOAN", 1, loan_period_months=18.5)

    def test_enums_parsed_from_strings(self):
        h = Holding("Loan", "LOAN", 1000, owner="OwnerA", repayment_type="만기일시상환")
        self.assertEqual(h.category, Category.LOAN)
        self.assertEqual(h.owner, Owner.OWNER_A)
        self.assertEqual(h.repayment_type, RepaymentType.BULLET)
        self.assertEqual(Holding("Loan", "LOAN", 1, repayment_type="AMORTIZING").repayment_type,
                         RepaymentType.AMORTIZING)

    def test_unknown_category_rejected(self):
        with self.assertRaises(InvalidInputError):
            Holding("Boat", "YACHT", 1)

    def test_classification(self):
        for cat in (Category.STOCK, Category.PENSION, Category.VIRTUAL_ASSET):
            self.assertTrue(is_investment_category(cat))
        for cat in (Category.CASH, Category.REAL_ESTATE, Category.LOAN):
            self.assertFalse(is_investment_category(cat))
        self.assertTrue(is_loan_category(Category.LOAN))
        self.assertFalse(is_loan_category(Category.CASH))

    def test_aware_timestamp_normalized(self):
        h = Holding("Cash", "CASH", 1, created_at="2025-01-31T15:00:00Z")
        self.assertEqual(h.created_at, datetime(2025, 1, 31, 15, 0))
        self.assertIsNone(h.created_at.tzinfo)


class TestRecordParsing(unittest.TestCase):

    def test_scaled_units_applied_at_entry(self):
        rec = {
            'id': 'a1', 'name': '아파트', 'category': 'REAL_ESTATE', 'owner': 'Shared',
            'amount': 65000, 'metadata': {'purchase_price': 52000},
            'created_at': '2024-05-01T00:00:00.000Z',
        }
        h = holding_from_record(rec)
        self.assertEqual(h.amount, 650_000_000)
        self.assertEqual(h.purchase_price, 520_000_000)

        raw = holding_from_record(rec, scaled_units=False)
        self.assertEqual(raw.amount, 65000)

    def test_investment_amount_not_scaled(self):
        rec = {'name': 'AAPL', 'category': 'STOCK', 'owner': 'OwnerA', 'amount': 3,
               'metadata': {'avg_price': 150, 'country': '미국', 'ticker': 'AAPL'}}
        h = holding_from_record(rec)
        self.assertEqual(h.amount, 3)
        self.assertEqual(h.currency, "USD")  # Inferred from country at entry
        self.assertEqual(h.ticker, "AAPL")

    def test_loan_metadata(self):
        rec = {'name': '신용대출', 'category': 'LOAN', 'owner': 'OwnerB', 'amount': 3000,
               'metadata': {'interest_rate': 5.5, 'loan_period': 24, 'repayment_type': '만기일시상환',
                            'is_dsr_excluded': True, 'loan_type': '신용대출'},
               'updated_at': '2024-02-01T09:00:00+09:00'}
        h = holding_from_record(rec)
        self.assertEqual(h.amount, 30_000_000)
        self.assertEqual(h.loan_period_months, 24)
        self.assertTrue(h.is_dsr_excluded)
        self.assertEqual(h.created_at, datetime(2024, 2, 1, 0, 0))  # updated_at fallback, UTC


class TestValuationEngine(unittest.TestCase):

    def setUp(self):
        self.stock = Holding("AAPL", "STOCK", 10, avg_price=100, current_price=150, currency="USD")

    def test_price_fallback_chain(self):
        self.assertEqual(unit_price(self.stock), 150)
        self.assertEqual(unit_price(Holding("X", "STOCK", 10, avg_price=100)), 100)
        self.assertEqual(unit_price(Holding("X", "STOCK", 10)), 0)
        # A quoted price of 0 is still a price
        self.assertEqual(unit_price(Holding("X", "STOCK", 10, avg_price=100, current_price=0)), 0)

    def test_current_value(self):
        self.assertEqual(current_value(self.stock), 1500)
        self.assertEqual(current_value(Holding("Cash", "CASH", 5000)), 5000)
        self.assertEqual(current_value(Holding("Loan", "LOAN", 7000, interest_rate=3)), 7000)

    def test_profit_rate(self):
        self.assertAlmostEqual(profit_rate_percent(self.stock), 50.0)
        self.assertEqual(profit_rate_percent(Holding("X", "PENSION", 10, current_price=5)), 0)
        self.assertEqual(profit_rate_percent(Holding("X", "VIRTUAL_ASSET", 1, avg_price=0, current_price=9)), 0)

    def test_real_estate_profit_uses_purchase_price(self):
        home = Holding("Home", "REAL_ESTATE", 500_000_000, purchase_price=400_000_000)
        self.assertAlmostEqual(profit_rate_percent(home), 25.0)
        val = value_holding(home, 1400)
        self.assertEqual(val.profit_amount, 100_000_000)
        self.assertEqual(val.cost_basis, 400_000_000)

        no_basis = value_holding(Holding("Land", "REAL_ESTATE", 1000), 1400)
        self.assertEqual(no_basis.profit_rate_percent, 0)

    def test_usd_valuation_both_sides_converted(self):
        val = value_holding(self.stock, 1000)
        self.assertEqual(val.current_value, 1_500_000)
        self.assertEqual(val.cost_basis, 1_000_000)
        self.assertEqual(val.profit_amount, 500_000)
        self.assertEqual(val.native_value, 1500)
        self.assertEqual(val.native_profit, 500)

    def test_exchange_rate_scales_krw_only(self):
        base = value_holding(self.stock, 1000)
        scaled = value_holding(self.stock, 1300)
        k = 1.3
        self.assertAlmostEqual(scaled.current_value, base.current_value * k)
        self.assertAlmostEqual(scaled.profit_amount, base.profit_amount * k)
        self.assertEqual(scaled.native_value, base.native_value)
        self.assertEqual(scaled.native_profit, base.native_profit)
        self.assertEqual(scaled.profit_rate_percent, base.profit_rate_percent)

    def test_loan_has_no_profit(self):
        val = value_holding(Holding("Loan", "LOAN", 1000, interest_rate=4), 1400)
        self.assertEqual(val.current_value, 1000)
        self.assertEqual(val.profit_amount, 0)
        self.assertEqual(val.profit_rate_percent, 0)

    def test_market_variance_scales_value_not_basis(self):
        val = value_holding(self.stock, 1000, market_variance=0.9)
        self.assertAlmostEqual(val.current_value, 1_350_000)
        self.assertEqual(val.cost_basis, 1_000_000)
        self.assertAlmostEqual(val.profit_amount, 350_000)

        cash = value_holding(Holding("Cash", "CASH", 1000), 1000, market_variance=0.9)
        self.assertEqual(cash.current_value, 1000)


if __name__ == '__main__':
    unittest.main()
