"""Parser for currency conversion rules.

A rule is a chain of terms such as ``*(BTC/USD:kraken) /(EUR/USD)``. Each term
multiplies or divides the running amount by the price of one instrument.
Whitespace may appear anywhere between tokens and is dropped from the
instrument key; any other stray character rejects the whole rule.
"""

from __future__ import annotations

from .ledger import (
    NAME_DELIMITERS,
    ConversionOperator,
    ConversionRule,
    ConversionStep,
    InstrumentKey,
    LedgerError,
    instrument_key,
)

_OPERATORS = frozenset(op.value for op in ConversionOperator)


class RuleSyntaxError(LedgerError):
    def __init__(self, raw_rule: str, *, position: int, reason: str) -> None:
        self.raw_rule = raw_rule
        self.position = position
        self.reason = reason
        super().__init__(f"Can't parse currency conversion rule {raw_rule!r}: {reason} at position {position}")


class _RuleScanner:
    def __init__(self, raw_rule: str) -> None:
        self._text = raw_rule
        self._pos = 0

    def parse(self) -> ConversionRule:
        steps: list[ConversionStep] = []
        self._skip_whitespace()
        while not self._at_end():
            steps.append(self._term())
            self._skip_whitespace()
        return tuple(steps)

    def _term(self) -> ConversionStep:
        op = self._peek()
        if op not in _OPERATORS:
            raise self._error("expected '*' or '/'")
        self._pos += 1
        self._skip_whitespace()
        self._expect("(")
        key = self._instrument_key()
        self._expect(")")
        return ConversionStep(operator=ConversionOperator(op), instrument_key=key)

    def _instrument_key(self) -> InstrumentKey:
        symbol = self._name("symbol")
        self._expect("/")
        currency = self._name("currency")
        provider = ""
        if self._peek() == ":":
            self._pos += 1
            provider = self._name("provider", allow_empty=True)
        return instrument_key(symbol, currency, provider)

    def _name(self, what: str, *, allow_empty: bool = False) -> str:
        start = self._pos
        while not self._at_end() and self._text[self._pos] not in NAME_DELIMITERS:
            self._pos += 1
        name = "".join(self._text[start : self._pos].split())
        if not name and not allow_empty:
            raise self._error(f"expected {what}")
        return name

    def _expect(self, char: str) -> None:
        if self._peek() != char:
            raise self._error(f"expected {char!r}")
        self._pos += 1

    def _skip_whitespace(self) -> None:
        while not self._at_end() and self._text[self._pos].isspace():
            self._pos += 1

    def _peek(self) -> str:
        return "" if self._at_end() else self._text[self._pos]

    def _at_end(self) -> bool:
        return self._pos >= len(self._text)

    def _error(self, reason: str) -> RuleSyntaxError:
        found = self._peek()
        detail = f"{reason}, found {found!r}" if found else f"{reason}, found end of rule"
        return RuleSyntaxError(self._text, position=self._pos, reason=detail)


def parse_rule(raw_rule: str) -> ConversionRule:
    """Compile ``raw_rule`` into conversion steps in the order they are written.

    The empty (or whitespace-only) rule yields no steps, i.e. identity.
    Raises ``RuleSyntaxError`` if the text does not follow the grammar.
    """
    return _RuleScanner(raw_rule).parse()


__all__ = ["RuleSyntaxError", "parse_rule"]
