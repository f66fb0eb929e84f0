"""Merchant normalizer: maps raw merchant text to canonical names."""

import re
from collections.abc import Iterable
from dataclasses import dataclass

from finance_helper.models.category import MerchantAlias
from finance_helper.models.transaction import Transaction
from finance_helper.utils.logging_config import get_logger
from finance_helper.utils.regex_utils import compile_user_pattern

logger = get_logger(__name__)


@dataclass(frozen=True)
class _CompiledAlias:
    regex: re.Pattern[str]
    canonical_name: str


class MerchantNormalizer:
    """Assigns ``merchant_norm`` from the first matching enabled alias.

    Aliases are tried oldest first against merchant + " " + note. A
    transaction no alias matches keeps whatever ``merchant_norm`` it had.
    """

    def __init__(self, aliases: Iterable[MerchantAlias]):
        enabled = sorted(
            (a for a in aliases if a.enabled),
            key=lambda a: (a.created_at, a.id or 0),
        )
        self.aliases: list[_CompiledAlias] = []
        for alias in enabled:
            regex = compile_user_pattern(alias.pattern, alias.flags, f"alias {alias.canonical_name!r}")
            if regex is not None:
                self.aliases.append(_CompiledAlias(regex, alias.canonical_name))

    def normalize(self, transactions: list[Transaction]) -> list[Transaction]:
        """Normalize merchant names.

        Args:
            transactions: Transactions to process.

        Returns:
            Same list with ``merchant_norm`` assigned (modified in place).
        """
        matched = 0
        for txn in transactions:
            name = self.match(txn.match_text)
            if name is not None:
                txn.merchant_norm = name
                matched += 1

        logger.info(f"Normalized merchant names for {matched}/{len(transactions)} transactions")
        return transactions

    def match(self, text: str) -> str | None:
        """Return the canonical name for a match text, or None."""
        for alias in self.aliases:
            if alias.regex.search(text):
                return alias.canonical_name
        return None


def normalize_merchants(
    transactions: list[Transaction],
    aliases: Iterable[MerchantAlias],
) -> list[Transaction]:
    """Convenience function to normalize merchant names."""
    return MerchantNormalizer(aliases).normalize(transactions)
