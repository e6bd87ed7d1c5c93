"""
Header → column index mapping for Google Ads Editor exports.

Editor exports carry ~200 columns whose order changes between Editor versions
and account types, so columns are located by header name rather than position.
HEADER_ALIASES is the single registry of accepted header names per logical
field. Matching is case-insensitive and whitespace-trimmed, but otherwise exact.
"""
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

# ── Header registry ──────────────────────────────────────────────────
# Keys are logical field names used by the extractor.
# Values are accepted lowercase header names, tried in order.

HEADER_ALIASES: Mapping[str, Tuple[str, ...]] = MappingProxyType({
    # Some exports keep a stray BOM on the first header cell
    "account": ("account", "\ufeffaccount"),
    "account_name": ("account name",),

    # Campaign
    "campaign": ("campaign",),
    "campaign_labels": ("labels",),
    "campaign_type": ("campaign type",),
    "networks": ("networks",),
    "budget": ("budget",),
    "budget_type": ("budget type",),
    "bid_strategy_type": ("bid strategy type",),
    "bid_strategy_name": ("bid strategy name",),
    "target_cpa": ("target cpa",),
    "target_roas": ("target roas",),
    "max_cpc_bid_limit": ("maximum cpc bid limit",),
    "start_date": ("start date",),
    "end_date": ("end date",),
    "ad_schedule": ("ad schedule",),
    "campaign_status": ("campaign status",),

    # Ad group
    "ad_group": ("ad group",),
    "ad_group_type": ("ad group type",),
    "max_cpc": ("max cpc",),
    "max_cpm": ("max cpm",),
    "target_cpc": ("target cpc",),
    "ad_group_target_roas": ("target roas",),
    "desktop_bid_modifier": ("desktop bid modifier",),
    "mobile_bid_modifier": ("mobile bid modifier",),
    "tablet_bid_modifier": ("tablet bid modifier",),
    "optimized_targeting": ("optimized targeting",),
    "ad_group_status": ("ad group status",),

    # Keyword
    "keyword": ("keyword",),
    "keyword_match_type": ("account keyword type", "match type"),
    "first_page_bid": ("first page bid",),
    "top_of_page_bid": ("top of page bid",),
    "first_position_bid": ("first position bid",),
    "quality_score": ("quality score",),
    "landing_page_experience": ("landing page experience",),
    "expected_ctr": ("expected ctr",),
    "ad_relevance": ("ad relevance",),

    # Ad
    "ad_type": ("ad type",),
    "final_url": ("final url",),
    "path1": ("path 1",),
    "path2": ("path 2",),
    "approval_status": ("approval status",),
    "ad_strength": ("ad strength",),

    # Keyword / ad row status
    "status": ("status",),
})

MAX_HEADLINES = 15
MAX_DESCRIPTIONS = 5


def normalize_header(header: str) -> str:
    """Lowercase and trim a header cell for matching."""
    return header.strip().lower()


def _numbered_indices(first_index: Mapping[str, int], prefix: str, count: int) -> Tuple[int, ...]:
    """Column indices of "<prefix> 1".."<prefix> N", in number order, skipping gaps."""
    found = (first_index.get(f"{prefix} {n}") for n in range(1, count + 1))
    return tuple(idx for idx in found if idx is not None)


@dataclass(frozen=True)
class ColumnMap:
    """Resolved column positions for one export. Built once from the header line."""
    indices: Mapping[str, int]
    headline_indices: Tuple[int, ...] = ()
    description_indices: Tuple[int, ...] = ()
    column_count: int = 0

    @classmethod
    def from_headers(cls, headers: Iterable[str]) -> "ColumnMap":
        normalized = [normalize_header(h) for h in headers]
        first_index: Dict[str, int] = {}
        for idx, name in enumerate(normalized):
            first_index.setdefault(name, idx)

        indices: Dict[str, int] = {}
        for key, aliases in HEADER_ALIASES.items():
            for alias in aliases:
                if alias in first_index:
                    indices[key] = first_index[alias]
                    break

        return cls(
            indices=MappingProxyType(indices),
            headline_indices=_numbered_indices(first_index, "headline", MAX_HEADLINES),
            description_indices=_numbered_indices(first_index, "description", MAX_DESCRIPTIONS),
            column_count=len(normalized),
        )

    def has(self, key: str) -> bool:
        return key in self.indices

    def missing(self, keys: Iterable[str]) -> List[str]:
        """Keys from `keys` that have no matching column."""
        return [key for key in keys if key not in self.indices]

    def value(self, columns: Sequence[str], key: str) -> Optional[str]:
        """Trimmed cell for `key`; None if the column is absent, the row is short, or the cell is blank."""
        idx = self.indices.get(key)
        if idx is None:
            return None
        return _cell(columns, idx)

    def headlines(self, columns: Sequence[str]) -> List[str]:
        return _non_blank_cells(columns, self.headline_indices)

    def descriptions(self, columns: Sequence[str]) -> List[str]:
        return _non_blank_cells(columns, self.description_indices)


def _cell(columns: Sequence[str], idx: int) -> Optional[str]:
    if idx >= len(columns):
        return None
    value = columns[idx].strip()
    return value or None


def _non_blank_cells(columns: Sequence[str], indices: Sequence[int]) -> List[str]:
    values = (_cell(columns, idx) for idx in indices)
    return [v for v in values if v]
