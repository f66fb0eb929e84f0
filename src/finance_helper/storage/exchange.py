"""JSON exchange formats: transaction backups, categories with rules, merchant aliases.

Every import validates the whole payload before touching a store, so a
malformed file raises ``FormatError`` and leaves nothing half-imported.
Entries that are merely incomplete (no name, no pattern) are skipped, the
same as an unmatched CSV row.
"""

import json
from dataclasses import dataclass
from typing import Any, Iterable, Optional

from finance_helper.models.category import CategoryType
from finance_helper.models.transaction import Transaction
from finance_helper.storage.rule_store import RuleStore
from finance_helper.utils.date_utils import epoch_millis
from finance_helper.utils.logging_config import get_logger
from finance_helper.utils.regex_utils import DEFAULT_FLAGS

logger = get_logger(__name__)

FORMAT_VERSION = 1


class FormatError(ValueError):
    """Raised when an exchange payload does not have the expected shape."""


@dataclass
class ImportSummary:
    """Counts reported after an upsert import."""

    created: int = 0
    updated: int = 0
    skipped: int = 0


def load_json(text: str) -> Any:
    """Decode exchange JSON.

    Raises:
        FormatError: If the text is not valid JSON.
    """
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise FormatError(f"Invalid JSON: {e}") from e


def dump_json(payload: dict[str, Any]) -> str:
    """Encode an exchange payload the way it is written to disk."""
    return json.dumps(payload, ensure_ascii=False, indent=2)


def _require_list(payload: Any, *keys: str) -> None:
    if not isinstance(payload, dict):
        raise FormatError("Expected a JSON object at the top level")
    for key in keys:
        if not isinstance(payload.get(key), list):
            raise FormatError(f"Expected '{key}' to be a list")


def _name(entry: dict[str, Any], key: str) -> Optional[str]:
    """Trimmed text of a name field, or None when missing or blank."""
    value = entry.get(key)
    if value is None:
        return None
    return str(value).strip() or None


# -- transaction backups ---------------------------------------------------


def export_backup(
    transactions: Iterable[Transaction], exported_at: Optional[int] = None
) -> dict[str, Any]:
    """Build a bulk backup payload of a transaction collection."""
    return {
        "version": FORMAT_VERSION,
        "exportedAt": exported_at if exported_at is not None else epoch_millis(),
        "transactions": [txn.to_dict() for txn in transactions],
    }


def parse_backup(payload: Any) -> list[Transaction]:
    """Read transactions out of a backup payload.

    Args:
        payload: Decoded JSON of a backup file.

    Returns:
        The transactions in file order. They still need categorization
        before being merged into a collection.

    Raises:
        FormatError: If the payload or any transaction entry is malformed.
    """
    _require_list(payload, "transactions")

    transactions = []
    for index, entry in enumerate(payload["transactions"]):
        try:
            transactions.append(Transaction.from_dict(entry))
        except (ValueError, TypeError) as e:
            raise FormatError(f"Transaction #{index + 1} is invalid: {e}") from e

    logger.info(f"Parsed {len(transactions)} transactions from backup")
    return transactions


# -- categories and rules ---------------------------------------------------


def export_categories_and_rules(
    store: RuleStore, exported_at: Optional[int] = None
) -> dict[str, Any]:
    """Build the categories + rules exchange payload.

    Rules reference their category by name instead of by store id.
    """
    names = {c.id: c.name for c in store.list_categories()}
    return {
        "version": FORMAT_VERSION,
        "categories": [c.to_dict() for c in store.list_categories()],
        "rules": [
            {
                "pattern": r.pattern,
                "flags": r.flags,
                "enabled": r.enabled,
                "createdAt": r.created_at,
                "categoryName": names.get(r.category_id),
            }
            for r in store.list_rules()
        ],
        "exportedAt": exported_at if exported_at is not None else epoch_millis(),
    }


def import_categories_and_rules(store: RuleStore, payload: Any) -> ImportSummary:
    """Upsert categories by name, then rules by (category name, pattern).

    An existing category gets its type and color replaced. An existing rule
    gets its flags and enabled state replaced. Rules naming a category that
    is neither in the payload nor in the store are skipped.

    Raises:
        FormatError: If the payload shape or a category type is invalid.
    """
    _require_list(payload, "categories", "rules")

    categories = []
    for entry in payload["categories"]:
        if not isinstance(entry, dict):
            continue
        name = _name(entry, "name")
        if name is None or not entry.get("type"):
            continue
        try:
            category_type = CategoryType.parse(str(entry["type"]))
        except ValueError as e:
            raise FormatError(f"Category {name!r} has an invalid type") from e
        categories.append((name, category_type, entry.get("color")))

    rules = []
    for entry in payload["rules"]:
        if not isinstance(entry, dict) or not entry.get("pattern"):
            continue
        category_name = _name(entry, "categoryName")
        if category_name is None:
            continue
        flags = entry.get("flags")
        enabled = entry.get("enabled")
        rules.append((
            category_name,
            str(entry["pattern"]),
            DEFAULT_FLAGS if flags is None else str(flags),
            True if enabled is None else bool(enabled),
        ))

    summary = ImportSummary()
    for name, category_type, color in categories:
        existing = store.find_category(name)
        if existing is not None:
            store.update_category(
                existing.id,  # type: ignore[arg-type]
                category_type=category_type,
                color=color,
                clear_color=color is None,
            )
            summary.updated += 1
        else:
            store.add_category(name, category_type=category_type, color=color)
            summary.created += 1

    for category_name, pattern, flags, enabled in rules:
        category = store.find_category(category_name)
        if category is None:
            logger.debug(f"Skipping rule {pattern!r}: unknown category {category_name!r}")
            summary.skipped += 1
            continue
        match = next((r for r in store.list_rules(category.id) if r.pattern == pattern), None)
        if match is not None:
            store.update_rule(match.id, flags=flags, enabled=enabled)  # type: ignore[arg-type]
            summary.updated += 1
        else:
            store.add_rule(pattern, category.id, flags=flags, enabled=enabled)  # type: ignore[arg-type]
            summary.created += 1

    logger.info(
        f"Imported categories and rules: {summary.created} created, "
        f"{summary.updated} updated, {summary.skipped} skipped"
    )
    return summary


# -- merchant aliases -------------------------------------------------------


def export_merchant_aliases(
    store: RuleStore, exported_at: Optional[int] = None
) -> dict[str, Any]:
    """Build the merchant aliases exchange payload."""
    return {
        "version": FORMAT_VERSION,
        "aliases": [a.to_dict() for a in store.list_aliases()],
        "exportedAt": exported_at if exported_at is not None else epoch_millis(),
    }


def import_merchant_aliases(store: RuleStore, payload: Any) -> ImportSummary:
    """Upsert aliases by (canonical name, pattern, flags).

    Only ``enabled`` is updated on an existing alias.

    Raises:
        FormatError: If the payload shape is invalid.
    """
    _require_list(payload, "aliases")

    aliases = []
    for entry in payload["aliases"]:
        if not isinstance(entry, dict) or not entry.get("pattern"):
            continue
        canonical_name = _name(entry, "canonicalName")
        if canonical_name is None:
            continue
        flags = entry.get("flags")
        enabled = entry.get("enabled")
        aliases.append((
            canonical_name,
            str(entry["pattern"]),
            DEFAULT_FLAGS if flags is None else str(flags),
            True if enabled is None else bool(enabled),
        ))

    summary = ImportSummary()
    for canonical_name, pattern, flags, enabled in aliases:
        match = next(
            (
                a for a in store.list_aliases()
                if a.canonical_name == canonical_name
                and a.pattern == pattern
                and a.flags == flags
            ),
            None,
        )
        if match is not None:
            store.update_alias(match.id, enabled=enabled)  # type: ignore[arg-type]
            summary.updated += 1
        else:
            store.add_alias(pattern, canonical_name, flags=flags, enabled=enabled)
            summary.created += 1

    logger.info(
        f"Imported merchant aliases: {summary.created} created, {summary.updated} updated"
    )
    return summary
