"""Category, rule, and merchant alias store.

The pipeline only sees the read-only ``RuleRepository`` interface. ``RuleStore``
is the management side: it owns ids, enforces unique category names,
cascades rule deletion, and persists to YAML.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Optional

import yaml

from finance_helper.models.category import Category, CategoryRule, CategoryType, MerchantAlias
from finance_helper.utils.date_utils import epoch_millis
from finance_helper.utils.logging_config import get_logger
from finance_helper.utils.regex_utils import DEFAULT_FLAGS

logger = get_logger(__name__)


class StoreError(ValueError):
    """Raised for invalid store operations (duplicate name, unknown id)."""


class RuleRepository(ABC):
    """Read-only view of the rule and alias stores consumed by the pipeline."""

    @abstractmethod
    def list_enabled_category_rules(self) -> list[CategoryRule]:
        """Enabled category rules, oldest first."""

    @abstractmethod
    def list_categories(self) -> list[Category]:
        """All categories, oldest first."""

    @abstractmethod
    def list_enabled_merchant_aliases(self) -> list[MerchantAlias]:
        """Enabled merchant aliases, oldest first."""


def _by_creation(item: Any) -> tuple[int, int]:
    return (item.created_at, item.id or 0)


class RuleStore(RuleRepository):
    """In-memory store of categories, rules, and aliases.

    Note: This class is NOT thread-safe. Callers that edit the store while a
    pipeline run is in progress get whatever snapshot the run read first.
    """

    def __init__(self) -> None:
        self._categories: dict[int, Category] = {}
        self._rules: dict[int, CategoryRule] = {}
        self._aliases: dict[int, MerchantAlias] = {}
        self._next_id = 1

    def _allocate_id(self) -> int:
        new_id = self._next_id
        self._next_id += 1
        return new_id

    # -- read interface -------------------------------------------------

    def list_enabled_category_rules(self) -> list[CategoryRule]:
        return [r for r in self.list_rules() if r.enabled]

    def list_categories(self) -> list[Category]:
        return sorted(self._categories.values(), key=_by_creation)

    def list_enabled_merchant_aliases(self) -> list[MerchantAlias]:
        return [a for a in self.list_aliases() if a.enabled]

    def list_rules(self, category_id: Optional[int] = None) -> list[CategoryRule]:
        """All rules (enabled or not), optionally for one category, oldest first."""
        rules = [
            r for r in self._rules.values()
            if category_id is None or r.category_id == category_id
        ]
        return sorted(rules, key=_by_creation)

    def list_aliases(self) -> list[MerchantAlias]:
        """All aliases (enabled or not), oldest first."""
        return sorted(self._aliases.values(), key=_by_creation)

    # -- categories -----------------------------------------------------

    def get_category(self, category_id: int) -> Category:
        try:
            return self._categories[category_id]
        except KeyError:
            raise StoreError(f"Category {category_id} not found") from None

    def find_category(self, name: str) -> Optional[Category]:
        """Look up a category by its unique name."""
        for category in self._categories.values():
            if category.name == name:
                return category
        return None

    def add_category(
        self,
        name: str,
        category_type: CategoryType = CategoryType.EXPENSE,
        color: Optional[str] = None,
        created_at: Optional[int] = None,
    ) -> Category:
        """Create a category.

        Raises:
            StoreError: If the name is empty or already used.
        """
        name = name.strip()
        if not name:
            raise StoreError("Category name must not be empty")
        if self.find_category(name) is not None:
            raise StoreError(f"Category {name!r} already exists")

        category = Category(
            name=name,
            category_type=category_type,
            color=color,
            created_at=created_at if created_at is not None else epoch_millis(),
            id=self._allocate_id(),
        )
        self._categories[category.id] = category  # type: ignore[index]
        return category

    def update_category(
        self,
        category_id: int,
        name: Optional[str] = None,
        category_type: Optional[CategoryType] = None,
        color: Optional[str] = None,
        clear_color: bool = False,
    ) -> Category:
        """Edit a category in place.

        Raises:
            StoreError: If the id is unknown or the new name is taken.
        """
        category = self.get_category(category_id)
        if name is not None and name.strip() != category.name:
            other = self.find_category(name.strip())
            if other is not None:
                raise StoreError(f"Category {name!r} already exists")
            category.name = name.strip()
        if category_type is not None:
            category.category_type = category_type
        if clear_color:
            category.color = None
        elif color is not None:
            category.color = color
        return category

    def delete_category(self, category_id: int) -> int:
        """Delete a category and all of its rules.

        Returns:
            Number of rules deleted with it.
        """
        self.get_category(category_id)
        doomed = [r.id for r in self._rules.values() if r.category_id == category_id]
        for rule_id in doomed:
            del self._rules[rule_id]  # type: ignore[arg-type]
        del self._categories[category_id]
        logger.info(f"Deleted category {category_id} and {len(doomed)} rule(s)")
        return len(doomed)

    # -- rules ------------------------------------------------------------

    def get_rule(self, rule_id: int) -> CategoryRule:
        try:
            return self._rules[rule_id]
        except KeyError:
            raise StoreError(f"Rule {rule_id} not found") from None

    def add_rule(
        self,
        pattern: str,
        category_id: int,
        flags: str = DEFAULT_FLAGS,
        enabled: bool = True,
        created_at: Optional[int] = None,
    ) -> CategoryRule:
        """Create a rule for an existing category.

        The pattern is stored as typed; an invalid pattern is only skipped at
        classification time.

        Raises:
            StoreError: If the category does not exist or the pattern is empty.
        """
        self.get_category(category_id)
        if not pattern:
            raise StoreError("Rule pattern must not be empty")
        rule = CategoryRule(
            pattern=pattern,
            category_id=category_id,
            flags=flags,
            enabled=enabled,
            created_at=created_at if created_at is not None else epoch_millis(),
            id=self._allocate_id(),
        )
        self._rules[rule.id] = rule  # type: ignore[index]
        return rule

    def update_rule(
        self,
        rule_id: int,
        pattern: Optional[str] = None,
        flags: Optional[str] = None,
        enabled: Optional[bool] = None,
        category_id: Optional[int] = None,
    ) -> CategoryRule:
        """Edit a rule in place."""
        rule = self.get_rule(rule_id)
        if category_id is not None:
            self.get_category(category_id)
            rule.category_id = category_id
        if pattern:
            rule.pattern = pattern
        if flags is not None:
            rule.flags = flags
        if enabled is not None:
            rule.enabled = enabled
        return rule

    def delete_rule(self, rule_id: int) -> None:
        self.get_rule(rule_id)
        del self._rules[rule_id]

    # -- merchant aliases -------------------------------------------------

    def get_alias(self, alias_id: int) -> MerchantAlias:
        try:
            return self._aliases[alias_id]
        except KeyError:
            raise StoreError(f"Merchant alias {alias_id} not found") from None

    def add_alias(
        self,
        pattern: str,
        canonical_name: str,
        flags: str = DEFAULT_FLAGS,
        enabled: bool = True,
        created_at: Optional[int] = None,
    ) -> MerchantAlias:
        """Create a merchant alias.

        Raises:
            StoreError: If the pattern or canonical name is empty.
        """
        if not pattern or not canonical_name.strip():
            raise StoreError("Merchant alias needs a pattern and a canonical name")
        alias = MerchantAlias(
            pattern=pattern,
            canonical_name=canonical_name.strip(),
            flags=flags,
            enabled=enabled,
            created_at=created_at if created_at is not None else epoch_millis(),
            id=self._allocate_id(),
        )
        self._aliases[alias.id] = alias  # type: ignore[index]
        return alias

    def update_alias(
        self,
        alias_id: int,
        pattern: Optional[str] = None,
        canonical_name: Optional[str] = None,
        flags: Optional[str] = None,
        enabled: Optional[bool] = None,
    ) -> MerchantAlias:
        """Edit an alias in place."""
        alias = self.get_alias(alias_id)
        if pattern:
            alias.pattern = pattern
        if canonical_name and canonical_name.strip():
            alias.canonical_name = canonical_name.strip()
        if flags is not None:
            alias.flags = flags
        if enabled is not None:
            alias.enabled = enabled
        return alias

    def delete_alias(self, alias_id: int) -> None:
        self.get_alias(alias_id)
        del self._aliases[alias_id]

    # -- serialization ----------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        """Serialize with ids, for the YAML store file."""
        return {
            "categories": [
                {"id": c.id, **c.to_dict()} for c in self.list_categories()
            ],
            "rules": [
                {
                    "id": r.id,
                    "pattern": r.pattern,
                    "flags": r.flags,
                    "category_id": r.category_id,
                    "enabled": r.enabled,
                    "createdAt": r.created_at,
                }
                for r in self.list_rules()
            ],
            "aliases": [{"id": a.id, **a.to_dict()} for a in self.list_aliases()],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RuleStore":
        """Rebuild a store from ``to_dict`` output, preserving ids.

        Raises:
            StoreError: If a section is not a list or an entry is malformed.
        """
        store = cls()
        for section in ("categories", "rules", "aliases"):
            if not isinstance(data.get(section) or [], list):
                raise StoreError(f"'{section}' must be a list")

        try:
            for entry in data.get("categories") or []:
                category = Category(
                    name=str(entry["name"]),
                    category_type=CategoryType.parse(str(entry.get("type", "expense"))),
                    color=entry.get("color"),
                    created_at=int(entry.get("createdAt", 0)),
                    id=int(entry["id"]),
                )
                store._categories[category.id] = category  # type: ignore[index]
            for entry in data.get("rules") or []:
                rule = CategoryRule(
                    pattern=str(entry["pattern"]),
                    category_id=int(entry["category_id"]),
                    flags=str(entry.get("flags", DEFAULT_FLAGS)),
                    enabled=bool(entry.get("enabled", True)),
                    created_at=int(entry.get("createdAt", 0)),
                    id=int(entry["id"]),
                )
                if rule.category_id not in store._categories:
                    logger.warning(f"Dropping rule {rule.id}: category {rule.category_id} missing")
                    continue
                store._rules[rule.id] = rule  # type: ignore[index]
            for entry in data.get("aliases") or []:
                alias = MerchantAlias(
                    pattern=str(entry["pattern"]),
                    canonical_name=str(entry["canonicalName"]),
                    flags=str(entry.get("flags", DEFAULT_FLAGS)),
                    enabled=bool(entry.get("enabled", True)),
                    created_at=int(entry.get("createdAt", 0)),
                    id=int(entry["id"]),
                )
                store._aliases[alias.id] = alias  # type: ignore[index]
        except (KeyError, TypeError, ValueError) as e:
            raise StoreError(f"Malformed rule store entry: {e}") from e

        used = [*store._categories, *store._rules, *store._aliases]
        store._next_id = max(used, default=0) + 1
        return store


def load_rule_store(path: Path) -> RuleStore:
    """Load a rule store from YAML; a missing file gives an empty store.

    Raises:
        StoreError: If the file content is malformed.
        yaml.YAMLError: If the file is not valid YAML.
    """
    if not path.exists():
        logger.info(f"Rule store {path} not found, starting empty")
        return RuleStore()

    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise StoreError(f"Rule store {path} must contain a mapping")

    store = RuleStore.from_dict(data)
    logger.info(
        f"Loaded {len(store.list_categories())} categories, {len(store.list_rules())} rules "
        f"and {len(store.list_aliases())} aliases from {path}"
    )
    return store


def save_rule_store(store: RuleStore, path: Path) -> None:
    """Write a rule store to YAML."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        yaml.safe_dump(store.to_dict(), f, allow_unicode=True, sort_keys=False)
    logger.info(f"Saved rule store to {path}")
