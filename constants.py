# constants.py

# ==========================================
# EXCHANGE RATE
# ==========================================
DEFAULT_USD_KRW = 1450  # Used when the rate fetch fails
USD_KRW_SYMBOL = "USDKRW=X"
USD_KRW_PAIR = "USDKRW"

# ==========================================
# CACHE
# ==========================================
CACHE_TTL_SECONDS = 300  # 5 minutes

# ==========================================
# DSR
# ==========================================
BANK_LIMIT_PERCENTAGE = 40
DEFAULT_ANNUAL_INCOME = 60_000_000
DEFAULT_LOAN_PERIOD_MONTHS = 12

# ==========================================
# HISTORY
# ==========================================
HISTORY_MONTHS_COUNT = 6
MARKET_VARIANCE_FACTOR = 0.015  # Per-month backward discount on investment value

# ==========================================
# UNITS & MARKETS
# ==========================================
MAN_WON = 10_000  # Real estate / loan amounts are entered in 만원
USD_COUNTRY_NAMES = ("미국", "US")
KR_COUNTRY_NAMES = ("한국", "KR")
KR_TICKER_SUFFIXES = (".KS", ".KQ")
UNKNOWN_COUNTRY_LABEL = "기타"
