# rate_cache.py
import json
import logging
import math
import time
from collections.abc import MutableMapping
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Optional

from constants import (CACHE_TTL_SECONDS, DEFAULT_USD_KRW, KR_COUNTRY_NAMES,
                       KR_TICKER_SUFFIXES, USD_KRW_PAIR, USD_KRW_SYMBOL)
from financial_structs import InvalidInputError

logger = logging.getLogger(__name__)


class PriceFetchError(RuntimeError):
    """The upstream quote source returned nothing usable."""


@dataclass(frozen=True)
class Quote:
    symbol: str
    price: float
    currency: Optional[str] = None
    name: Optional[str] = None
    change_percent: Optional[float] = None


class JsonFileStorage(MutableMapping):
    """Dict-like storage persisted to a single JSON file."""

    def __init__(self, path):
        self.path = Path(path)

    def _load(self):
        if not self.path.exists():
            return {}
        with self.path.open(encoding="utf-8") as f:
            return json.load(f)

    def _dump(self, data):
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False)

    def __getitem__(self, key):
        return self._load()[key]

    def __setitem__(self, key, value):
        data = self._load()
        data[key] = value
        self._dump(data)

    def __delitem__(self, key):
        data = self._load()
        del data[key]
        self._dump(data)

    def __iter__(self):
        return iter(list(self._load()))

    def __len__(self):
        return len(self._load())


class TTLCache:
    """
    Time-bounded cache over an injected storage backend.

    Entries are stored as {'data': ..., 'timestamp': ...} so any JSON-capable
    mapping works as the backend. `clock` returns seconds.
    """

    def __init__(self, ttl_seconds=CACHE_TTL_SECONDS, storage=None, clock=time.time):
        self.ttl = ttl_seconds
        self.storage = storage if storage is not None else {}
        self.clock = clock
        self.prune()

    def _is_fresh(self, entry):
        return self.clock() - entry['timestamp'] < self.ttl

    def get(self, key):
        entry = self.storage.get(key)
        if entry is not None and self._is_fresh(entry):
            return entry['data']
        return None

    def set(self, key, value):
        self.storage[key] = {'data': value, 'timestamp': self.clock()}
        self.prune()

    def prune(self):
        expired = [k for k, entry in self.storage.items() if not self._is_fresh(entry)]
        for key in expired:
            del self.storage[key]
        return len(expired)

    def clear(self):
        self.storage.clear()

    def get_or_load(self, key, loader, force_refresh=False):
        if not force_refresh:
            cached = self.get(key)
            if cached is not None:
                logger.debug("Cache hit: %s", key)
                return cached
        logger.debug("Cache miss: %s", key)
        value = loader()
        self.set(key, value)
        return value


class QuoteCache:
    def __init__(self, fetcher, cache=None):
        self.fetcher = fetcher
        self.cache = cache if cache is not None else TTLCache()

    def _fetch(self, symbol):
        quote = self.fetcher(symbol)
        if isinstance(quote, dict):
            quote = Quote(**quote)
        if quote is None or not quote.price or not math.isfinite(quote.price):
            raise PriceFetchError(f"No price available for {symbol}")
        return asdict(quote)

    def get_quote(self, symbol, force_refresh=False):
        if not symbol or not symbol.strip():
            raise InvalidInputError("Ticker symbol is required")
        symbol = symbol.strip().upper()
        data = self.cache.get_or_load(symbol, lambda: self._fetch(symbol), force_refresh)
        return Quote(**data)

    def clear(self):
        self.cache.clear()


class ExchangeRateCache:
    """
    USD/KRW rate with a TTL. A failed or empty fetch degrades to `default_rate`
    instead of raising, and the fallback is not cached.
    """

    def __init__(self, fetcher, cache=None, default_rate=DEFAULT_USD_KRW):
        self.fetcher = fetcher
        self.cache = cache if cache is not None else TTLCache()
        self.default_rate = default_rate

    def _fetch(self):
        rate = self.fetcher(USD_KRW_SYMBOL)
        if isinstance(rate, Quote):
            rate = rate.price
        if not rate or not rate > 0 or not math.isfinite(rate):
            raise PriceFetchError(f"No exchange rate available for {USD_KRW_SYMBOL}")
        return {'rate': rate}

    def get_usd_krw_rate(self, force_refresh=False):
        try:
            data = self.cache.get_or_load(USD_KRW_PAIR, self._fetch, force_refresh)
        except Exception as e:
            logger.warning("Exchange rate fetch failed, using default %s: %s", self.default_rate, e)
            return self.default_rate
        return data['rate']

    def clear(self):
        self.cache.clear()


def quote_symbol(holding):
    """Korean listings need an exchange suffix for the quote source."""
    ticker = holding.ticker.strip()
    if holding.country in KR_COUNTRY_NAMES and not ticker.upper().endswith(KR_TICKER_SUFFIXES):
        return f"{ticker}.KS"
    return ticker


def refresh_prices(holdings, quote_cache):
    """
    Returns holdings with current_price filled from the quote cache.
    A holding whose quote cannot be fetched is returned unchanged.
    """
    refreshed = []
    for h in holdings:
        if not (h.is_investment and h.ticker):
            refreshed.append(h)
            continue
        symbol = quote_symbol(h)
        try:
            quote = quote_cache.get_quote(symbol)
        except Exception as e:
            logger.warning("Price refresh failed for %s (%s): %s", h.name, symbol, e)
            refreshed.append(h)
            continue
        refreshed.append(h.with_quote(quote.price, quote.currency))
    return refreshed
