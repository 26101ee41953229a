# utils/goal_pacing/categories.py
"""
Category Alias Table

One mapping between reporting categories and the tags each data source uses:
- ledger tags (vendas / vendas_loja.categoria), e.g. generico + similar
  -> generico_similar
- vendor product group codes (CDGRUPO), e.g. 20,25 -> rentaveis

Both the aggregator and the orchestrator read this table; nothing else
hardcodes a category code.
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from .constants import DEFAULT_CATEGORY_ALIASES, GENERAL_CATEGORY
from .exceptions import CategoryConfigError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CategoryAliasTable:
    """
    Immutable alias table.

    Usage:
        aliases = CategoryAliasTable.from_dict(DEFAULT_CATEGORY_ALIASES)

        aliases.ledger_categories_for('generico_similar')  # ('generico', 'similar')
        aliases.group_codes_for('r_mais')                   # (20, 25)
        aliases.bucket_for_group_codes([25, 20])            # 'rentaveis'
    """

    vendor_groups: Mapping[str, Tuple[int, ...]]
    ledger_categories: Mapping[str, Tuple[str, ...]]
    reporting_to_vendor: Mapping[str, str]

    # =========================================================================
    # CONSTRUCTION
    # =========================================================================

    @classmethod
    def from_dict(cls, data: Mapping) -> "CategoryAliasTable":
        """
        Build and validate a table from its dict/JSON form.

        Raises:
            CategoryConfigError: malformed entries or a group code claimed by
                two vendor buckets
        """
        try:
            vendor_groups = {
                str(bucket): tuple(int(code) for code in codes)
                for bucket, codes in dict(data.get("vendor_groups", {})).items()
            }
            ledger_categories = {
                str(category): tuple(str(tag) for tag in tags)
                for category, tags in dict(data.get("ledger_categories", {})).items()
            }
            reporting_to_vendor = {
                str(category): str(bucket)
                for category, bucket in dict(data.get("reporting_to_vendor", {})).items()
            }
        except (TypeError, ValueError, AttributeError) as e:
            raise CategoryConfigError(f"Malformed category alias table: {e}") from e

        if GENERAL_CATEGORY in vendor_groups:
            raise CategoryConfigError(
                f"'{GENERAL_CATEGORY}' is the unfiltered bucket and cannot list group codes"
            )

        owner: Dict[int, str] = {}
        for bucket, codes in vendor_groups.items():
            if not codes:
                raise CategoryConfigError(f"Vendor bucket '{bucket}' has no group codes")
            for code in codes:
                if code in owner and owner[code] != bucket:
                    raise CategoryConfigError(
                        f"Group code {code} belongs to both '{owner[code]}' and '{bucket}'"
                    )
                owner[code] = bucket

        for category, bucket in reporting_to_vendor.items():
            if bucket != GENERAL_CATEGORY and bucket not in vendor_groups:
                raise CategoryConfigError(
                    f"Category '{category}' points to unknown vendor bucket '{bucket}'"
                )

        return cls(
            vendor_groups=vendor_groups,
            ledger_categories=ledger_categories,
            reporting_to_vendor=reporting_to_vendor,
        )

    @classmethod
    def load(cls, path: Optional[str] = None) -> "CategoryAliasTable":
        """Load from a JSON file, or the built-in defaults when no path is given."""
        if not path:
            return cls.from_dict(DEFAULT_CATEGORY_ALIASES)

        try:
            with open(Path(path), "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise CategoryConfigError(f"Cannot read category alias file {path}: {e}") from e

        logger.info(f"Loaded category alias table from: {path}")
        return cls.from_dict(data)

    # =========================================================================
    # LEDGER SIDE
    # =========================================================================

    def ledger_categories_for(self, category: str) -> Tuple[str, ...]:
        """Ledger tags summed into a reporting category (itself when unaliased)."""
        return self.ledger_categories.get(category, (category,))

    def ledger_tags_for(self, categories: Iterable[str]) -> List[str]:
        """Distinct ledger tags needed to cover several reporting categories."""
        tags: List[str] = []
        for category in categories:
            for tag in self.ledger_categories_for(category):
                if tag not in tags:
                    tags.append(tag)
        return tags

    # =========================================================================
    # VENDOR SIDE
    # =========================================================================

    def vendor_bucket_for(self, category: str) -> Optional[str]:
        """Vendor bucket for a reporting category, None when the vendor doesn't track it."""
        if category in self.vendor_groups:
            return category
        return self.reporting_to_vendor.get(category)

    def group_codes_for(self, category: str) -> Tuple[int, ...]:
        """Group codes behind a reporting category or bucket; () for geral/untracked."""
        bucket = self.vendor_bucket_for(category)
        if bucket is None or bucket == GENERAL_CATEGORY:
            return ()
        return self.vendor_groups[bucket]

    def bucket_for_group_code(self, code) -> Optional[str]:
        try:
            code = int(code)
        except (TypeError, ValueError):
            return None
        for bucket, codes in self.vendor_groups.items():
            if code in codes:
                return bucket
        return None

    def bucket_for_group_codes(self, codes: Iterable[int]) -> Optional[str]:
        """Bucket owning every code in the set, None if the codes span buckets."""
        buckets = {self.bucket_for_group_code(code) for code in codes}
        if len(buckets) != 1:
            return None
        return buckets.pop()

    def all_group_codes(self) -> Tuple[int, ...]:
        codes = []
        for bucket_codes in self.vendor_groups.values():
            codes.extend(bucket_codes)
        return tuple(sorted(set(codes)))

    def is_vendor_tracked(self, category: str) -> bool:
        return self.vendor_bucket_for(category) is not None


def load_alias_table(path: Optional[str] = None) -> CategoryAliasTable:
    """Load the alias table named in configuration (or the defaults)."""
    if path is None:
        from utils.config import config
        path = config.get_app_setting("CATEGORY_ALIAS_FILE", "")
    return CategoryAliasTable.load(path)
