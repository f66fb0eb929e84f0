"""Transaction processing stages: normalization, enrichment, merging, reporting."""

from finance_helper.processing.categorizer import (
    UNCATEGORIZED,
    Categorizer,
    KeywordRule,
    categorize_transactions,
    get_category_summary,
)
from finance_helper.processing.flow import assign_flows, classify_flow
from finance_helper.processing.merchants import MerchantNormalizer, normalize_merchants
from finance_helper.processing.merger import merge_transactions, natural_key
from finance_helper.processing.normalizer import RowNormalizer, normalize_rows
from finance_helper.processing.report_generator import (
    compare_monthly,
    forecast_next_month,
    generate_report,
)

__all__ = [
    "RowNormalizer",
    "normalize_rows",
    "classify_flow",
    "assign_flows",
    "Categorizer",
    "KeywordRule",
    "UNCATEGORIZED",
    "categorize_transactions",
    "get_category_summary",
    "MerchantNormalizer",
    "normalize_merchants",
    "merge_transactions",
    "natural_key",
    "generate_report",
    "compare_monthly",
    "forecast_next_month",
]
