"""Rule/alias stores, transaction persistence, and JSON exchange formats."""

from finance_helper.storage.exchange import (
    FormatError,
    ImportSummary,
    dump_json,
    load_json,
    export_backup,
    export_categories_and_rules,
    export_merchant_aliases,
    import_categories_and_rules,
    import_merchant_aliases,
    parse_backup,
)
from finance_helper.storage.rule_store import (
    RuleRepository,
    RuleStore,
    StoreError,
    load_rule_store,
    save_rule_store,
)
from finance_helper.storage.transaction_store import TransactionStore

__all__ = [
    "RuleRepository",
    "RuleStore",
    "StoreError",
    "load_rule_store",
    "save_rule_store",
    "TransactionStore",
    "FormatError",
    "ImportSummary",
    "load_json",
    "dump_json",
    "export_backup",
    "parse_backup",
    "export_categories_and_rules",
    "import_categories_and_rules",
    "export_merchant_aliases",
    "import_merchant_aliases",
]
