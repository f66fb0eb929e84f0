"""Transaction merger: content-based deduplication across repeated imports."""

from collections.abc import Iterable
from datetime import date
from decimal import Decimal

from finance_helper.models.transaction import Transaction
from finance_helper.utils.logging_config import get_logger

logger = get_logger(__name__)

NaturalKey = tuple[date, Decimal, str, str]


def natural_key(txn: Transaction) -> NaturalKey:
    """Return the (date, amount, merchant, account) key of a transaction."""
    return txn.natural_key


def merge_transactions(
    existing: Iterable[Transaction],
    incoming: Iterable[Transaction],
) -> list[Transaction]:
    """Merge an incoming batch into an existing collection.

    Every existing transaction is kept, in order. An incoming transaction is
    appended only if its natural key is not yet in the result, so duplicates
    inside ``incoming`` collapse to their first occurrence too. Amounts
    compare numerically (``45.0`` and ``45.00`` are the same key).

    Note:
        The key ignores note and currency. Two genuinely distinct purchases
        with identical date, amount, merchant and account collapse into one.

    Args:
        existing: Current collection.
        incoming: Newly imported transactions.

    Returns:
        New list: existing transactions, then accepted incoming ones.
    """
    merged = list(existing)
    seen = {natural_key(t) for t in merged}
    added = 0
    skipped = 0

    for txn in incoming:
        key = natural_key(txn)
        if key in seen:
            skipped += 1
            continue
        seen.add(key)
        merged.append(txn)
        added += 1

    logger.info(f"Merged {added} new transactions ({skipped} duplicates skipped)")
    return merged
