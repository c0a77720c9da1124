import pytest

from domain.currency_converter import CurrencyConverter
from domain.ledger import CurrencyDefinition, PriceObservation
from tests.constants import BTC, EUR, FEB_1, GBP, JAN_1, MAR_1, USD
from tests.helpers.prices import make_price


@pytest.fixture(scope="function")
def currencies() -> list[CurrencyDefinition]:
    return [
        CurrencyDefinition(code=EUR, raw_rule=""),
        CurrencyDefinition(code=USD, raw_rule="*(USD/EUR)"),
        CurrencyDefinition(code=GBP, raw_rule="*(GBP/USD:ECB) *(USD/EUR)"),
        CurrencyDefinition(code=BTC, raw_rule="*(BTC/USD:kraken)*(USD/EUR)"),
    ]


@pytest.fixture(scope="function")
def prices() -> list[PriceObservation]:
    # Deliberately out of order; the index sorts per series.
    return [
        make_price(USD, EUR, MAR_1, "1.15"),
        make_price(USD, EUR, JAN_1, "1.10"),
        make_price(USD, EUR, FEB_1, "1.20"),
        make_price(GBP, USD, JAN_1, "1.30", provider="ECB"),
        make_price(BTC, USD, FEB_1, "9000", provider="kraken"),
    ]


@pytest.fixture(scope="function")
def converter(currencies: list[CurrencyDefinition], prices: list[PriceObservation]) -> CurrencyConverter:
    return CurrencyConverter(currencies, prices)
