"""Flow classifier: income, expense, or internal transfer."""

import re

from finance_helper.models.transaction import Flow, Transaction
from finance_helper.utils.logging_config import get_logger

logger = get_logger(__name__)

# Money moving between the user's own accounts
TRANSFER_PATTERN = re.compile(r"transfer|转账|internal", re.IGNORECASE)

# Credit card repayments: the spending was already counted on the card
REPAYMENT_PATTERN = re.compile(
    r"(online\s+)?payment\s*-\s*thank\s*you|credit\s*card\s*payment|还款",
    re.IGNORECASE,
)


def classify_flow(txn: Transaction) -> Flow:
    """Classify a transaction from its text and amount sign.

    Transfers and card repayments are internal movements and are kept out
    of income/expense totals; everything else follows the amount sign
    (zero counts as income).

    Args:
        txn: Transaction to classify.

    Returns:
        The flow.
    """
    text = txn.match_text
    if TRANSFER_PATTERN.search(text) or REPAYMENT_PATTERN.search(text):
        return Flow.TRANSFER
    return Flow.INCOME if txn.amount >= 0 else Flow.EXPENSE


def assign_flows(transactions: list[Transaction]) -> list[Transaction]:
    """Set ``flow`` on every transaction.

    Args:
        transactions: Transactions to classify.

    Returns:
        Same list with flows assigned (modified in place).
    """
    counts = {flow: 0 for flow in Flow}
    for txn in transactions:
        txn.flow = classify_flow(txn)
        counts[txn.flow] += 1

    logger.info(
        f"Classified flows: {counts[Flow.INCOME]} income, "
        f"{counts[Flow.EXPENSE]} expense, {counts[Flow.TRANSFER]} transfer"
    )
    return transactions
