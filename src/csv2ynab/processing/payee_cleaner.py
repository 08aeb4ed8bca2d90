"""Payee cleanup: built-in noise stripping and user find/replace rules."""

import re
from collections.abc import Sequence

from csv2ynab.config import PayeeRule

# Phrases banks prepend to card transactions that carry no payee information
NOISE_PHRASES = [
    "purchase authorization",
    "pos purchase",
    "card purchase",
    "not available",
    "recurring payment",
]

_NOISE_PATTERNS = [re.compile(re.escape(p), re.IGNORECASE) for p in NOISE_PHRASES]

# Leading short dates like "12/24 " that some banks put before the merchant
_LEADING_DATE_PATTERN = re.compile(r"^\d{2,}/\d{2,}\s+")

_WHITESPACE_PATTERN = re.compile(r"\s+")


def auto_clean(payee: str) -> str:
    """Strip common bank noise from a payee.

    Removes the NOISE_PHRASES (case-insensitive), then a leading date token,
    then collapses whitespace and trims.

    >>> auto_clean("POS Purchase  STARBUCKS #123")
    'STARBUCKS #123'
    """
    for pattern in _NOISE_PATTERNS:
        payee = pattern.sub("", payee)
    payee = _LEADING_DATE_PATTERN.sub("", payee)
    payee = _WHITESPACE_PATTERN.sub(" ", payee)
    return payee.strip()


def apply_rules(payee: str, rules: Sequence[PayeeRule]) -> str:
    """Replace the payee using the first matching rule.

    Later rules are never consulted once one has matched.
    """
    for rule in rules:
        if rule.matches(payee):
            return rule.replacement
    return payee


def clean_payee(
    payee: str,
    auto_clean_payee: bool = False,
    rules: Sequence[PayeeRule] = (),
) -> str:
    """Sanitize a payee string.

    Args:
        payee: Payee text after optional trimming.
        auto_clean_payee: Whether to strip built-in noise first.
        rules: Ordered find/replace rules.

    Returns:
        Cleaned payee.
    """
    if auto_clean_payee:
        payee = auto_clean(payee)
    if rules:
        payee = apply_rules(payee, rules)
    return payee
