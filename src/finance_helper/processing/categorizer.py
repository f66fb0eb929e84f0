"""Category rule engine: built-in keyword rules, then user regex rules."""

import re
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Optional

from finance_helper.models.category import Category, CategoryRule
from finance_helper.models.transaction import Transaction
from finance_helper.utils.logging_config import get_logger
from finance_helper.utils.regex_utils import compile_user_pattern

logger = get_logger(__name__)

# Label used by reports for transactions without a category
UNCATEGORIZED = "Uncategorized"


@dataclass(frozen=True)
class KeywordRule:
    """Built-in heuristic rule: regex -> category label."""

    pattern: re.Pattern[str]
    category: str

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> Optional["KeywordRule"]:
        """Build from a settings entry ``{pattern, category}``; None if invalid."""
        pattern = str(data.get("pattern", ""))
        category = str(data.get("category", "")).strip()
        if not category:
            logger.warning(f"Skipping built-in rule {pattern!r}: no category")
            return None
        compiled = compile_user_pattern(pattern, str(data.get("flags", "i")), "built-in rule")
        return cls(compiled, category) if compiled else None


# Labels are the category names used by exported rule sets, so imports line up
DEFAULT_BUILTIN_RULES: list[KeywordRule] = [
    KeywordRule(re.compile(r"超市|便利店|沃尔玛|盒马|物美", re.IGNORECASE), "日常"),
    KeywordRule(re.compile(r"美团|饿了么|外卖", re.IGNORECASE), "餐饮"),
    KeywordRule(re.compile(r"地铁|打车|滴滴|高德|公交", re.IGNORECASE), "出行"),
    KeywordRule(re.compile(r"京东|淘宝|天猫|拼多多", re.IGNORECASE), "网购"),
    KeywordRule(re.compile(r"医院|药房|药店", re.IGNORECASE), "医疗"),
    KeywordRule(re.compile(r"房贷|房租|物业", re.IGNORECASE), "居住"),
    KeywordRule(
        re.compile(r"会员|腾讯视频|爱奇艺|网易云|Spotify|Netflix", re.IGNORECASE),
        "订阅",
    ),
]


@dataclass(frozen=True)
class CompiledRule:
    """A user rule ready for matching, with its category name resolved."""

    regex: re.Pattern[str]
    category: str
    rule: CategoryRule

    @classmethod
    def build(
        cls, rule: CategoryRule, categories_by_id: dict[int, Category]
    ) -> Optional["CompiledRule"]:
        """Compile a stored rule; None if its pattern is invalid or its category is gone."""
        category = categories_by_id.get(rule.category_id)
        if category is None:
            logger.warning(f"Skipping rule {rule.pattern!r}: category {rule.category_id} not found")
            return None
        regex = compile_user_pattern(rule.pattern, rule.flags, f"rule {rule.id}")
        if regex is None:
            return None
        return cls(regex, category.name, rule)


class Categorizer:
    """Assigns category labels to uncategorized transactions.

    Match text is merchant + " " + note. The categorizer applies, first hit wins:
    1. Built-in keyword rules, in declaration order
    2. Enabled user rules, oldest first
    Transactions that already carry a category pass through unchanged, so
    running the categorizer twice gives the same result.
    """

    def __init__(
        self,
        user_rules: Iterable[CategoryRule] = (),
        categories: Iterable[Category] = (),
        builtin_rules: Iterable[KeywordRule] | None = None,
    ):
        """Initialize with a snapshot of the rule store.

        Args:
            user_rules: Stored rules; disabled ones are ignored.
            categories: Stored categories, used to resolve rule labels.
            builtin_rules: Heuristic rules; None uses ``DEFAULT_BUILTIN_RULES``.
        """
        self.builtin_rules = list(DEFAULT_BUILTIN_RULES if builtin_rules is None else builtin_rules)

        categories_by_id = {c.id: c for c in categories if c.id is not None}
        enabled = sorted(
            (r for r in user_rules if r.enabled),
            key=lambda r: (r.created_at, r.id or 0),
        )
        self.user_rules: list[CompiledRule] = []
        for rule in enabled:
            compiled = CompiledRule.build(rule, categories_by_id)
            if compiled is not None:
                self.user_rules.append(compiled)

        skipped = len(enabled) - len(self.user_rules)
        if skipped:
            logger.warning(f"{skipped} user rule(s) skipped for this run")

    def categorize(self, transactions: list[Transaction]) -> list[Transaction]:
        """Categorize a list of transactions.

        Args:
            transactions: Transactions to categorize.

        Returns:
            Same list with categories assigned (modified in place).
        """
        assigned = 0
        already = 0
        for txn in transactions:
            if txn.category:
                already += 1
                continue
            category = self.match(txn.match_text)
            if category is not None:
                txn.category = category
                assigned += 1

        logger.info(
            f"Categorized {assigned} transactions ({already} already categorized, "
            f"{len(transactions) - assigned - already} uncategorized)"
        )
        return transactions

    def match(self, text: str) -> Optional[str]:
        """Return the category label for a match text, or None."""
        for builtin in self.builtin_rules:
            if builtin.pattern.search(text):
                logger.debug(f"Built-in rule {builtin.pattern.pattern!r} matched {text.strip()!r}")
                return builtin.category

        for compiled in self.user_rules:
            if compiled.regex.search(text):
                logger.debug(f"Rule {compiled.rule.id} matched {text.strip()!r}: {compiled.category}")
                return compiled.category

        return None


def get_category_summary(transactions: Iterable[Transaction]) -> dict[str, int]:
    """Count transactions per category label.

    Args:
        transactions: Transactions to count.

    Returns:
        Dict mapping category label (``Uncategorized`` for none) to count.
    """
    summary: dict[str, int] = {}
    for txn in transactions:
        category = txn.category or UNCATEGORIZED
        summary[category] = summary.get(category, 0) + 1
    return summary


def categorize_transactions(
    transactions: list[Transaction],
    user_rules: Iterable[CategoryRule],
    categories: Iterable[Category],
    builtin_rules: Iterable[KeywordRule] | None = None,
) -> list[Transaction]:
    """Convenience function to categorize transactions.

    Args:
        transactions: Transactions to categorize.
        user_rules: Stored user rules.
        categories: Stored categories.
        builtin_rules: Heuristic rules (None for the defaults).

    Returns:
        Same list with categories assigned.
    """
    return Categorizer(user_rules, categories, builtin_rules).categorize(transactions)
