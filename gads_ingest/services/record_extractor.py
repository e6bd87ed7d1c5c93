"""
Row classification and entity extraction for editor exports.

Editor exports are denormalised: every keyword and ad row repeats its campaign
and ad group, and campaign/ad group settings rows are interleaved with them.
The extractor walks rows in file order and emits:

- a CampaignRecord the first time a campaign name appears (on any row type);
  later rows for the same campaign never overwrite it
- an AdGroupRecord the first time a (campaign, ad group) pair appears
- a KeywordRecord for every row with a keyword (keywords are not deduplicated)
- otherwise an AdRecord for rows with an ad type

Numeric cells are coerced best-effort; an unparseable value becomes None,
never 0, so it cannot skew downstream bid or budget aggregates.
"""
import re
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Set

from gads_ingest.services.header_mapper import ColumnMap
from gads_ingest.services.records import (
    DEFAULT_STATUS,
    AdGroupBids,
    AdGroupRecord,
    AdRecord,
    CampaignRecord,
    DeviceBidModifiers,
    KeywordBids,
    KeywordQuality,
    KeywordRecord,
    ad_group_key,
)

_NON_NUMERIC = re.compile(r"[^0-9.\-]")
_NUMBER = re.compile(r"-?(\d+(\.\d*)?|\.\d+)")

MATCH_TYPES = ("Exact", "Phrase", "Broad")


# ── Cell coercion ────────────────────────────────────────────────────

def parse_number(value: Optional[str]) -> Optional[float]:
    """Parse a money/percent/number cell. '₹5,000.00' → 5000.0, '--' → None."""
    if not value:
        return None
    cleaned = _NON_NUMERIC.sub("", value)
    if not _NUMBER.fullmatch(cleaned):
        return None
    return float(cleaned)


def parse_labels(value: Optional[str]) -> List[str]:
    """Split a ';'-separated label cell, dropping blanks."""
    if not value:
        return []
    return [label.strip() for label in value.split(";") if label.strip()]


def normalize_match_type(value: Optional[str]) -> str:
    """Map an editor match type cell ('exact', 'Phrase match', ...) onto Exact/Phrase/Broad."""
    if not value:
        return "Broad"
    lowered = value.lower()
    for match_type in MATCH_TYPES:
        if match_type.lower() in lowered:
            return match_type
    return "Broad"


# ── Extraction ───────────────────────────────────────────────────────

@dataclass
class ExtractedRow:
    """Records emitted for one data row, in enqueue order."""
    campaign: Optional[CampaignRecord] = None
    ad_group: Optional[AdGroupRecord] = None
    keyword: Optional[KeywordRecord] = None
    ad: Optional[AdRecord] = None

    def records(self) -> list:
        return [r for r in (self.campaign, self.ad_group, self.keyword, self.ad) if r is not None]


@dataclass
class RecordExtractor:
    """Stateful per-import extractor. Owns the campaign / ad group dedup sets."""
    column_map: ColumnMap
    import_id: int
    account_id: str
    seen_campaigns: Set[str] = field(default_factory=set)
    seen_ad_group_keys: Set[str] = field(default_factory=set)

    def extract(self, columns: Sequence[str]) -> ExtractedRow:
        get = self._getter(columns)
        row = ExtractedRow()

        campaign = get("campaign")
        ad_group = get("ad_group")

        if campaign and campaign not in self.seen_campaigns:
            self.seen_campaigns.add(campaign)
            row.campaign = self._campaign(campaign, get)

        if campaign and ad_group:
            key = ad_group_key(campaign, ad_group)
            if key not in self.seen_ad_group_keys:
                self.seen_ad_group_keys.add(key)
                row.ad_group = self._ad_group(campaign, ad_group, get)

        keyword = get("keyword")
        ad_type = get("ad_type")
        if keyword:
            row.keyword = self._keyword(campaign, ad_group, keyword, get)
        elif ad_type:
            row.ad = self._ad(campaign, ad_group, ad_type, columns, get)

        return row

    def _getter(self, columns: Sequence[str]):
        column_map = self.column_map

        def get(key: str) -> Optional[str]:
            return column_map.value(columns, key)

        return get

    def _campaign(self, campaign: str, get) -> CampaignRecord:
        return CampaignRecord(
            import_id=self.import_id,
            account_id=self.account_id,
            campaign_name=campaign,
            labels=parse_labels(get("campaign_labels")),
            campaign_type=get("campaign_type") or "",
            networks=get("networks"),
            budget=parse_number(get("budget")),
            budget_type=get("budget_type"),
            bid_strategy_type=get("bid_strategy_type"),
            bid_strategy_name=get("bid_strategy_name"),
            target_cpa=parse_number(get("target_cpa")),
            target_roas=parse_number(get("target_roas")),
            max_cpc_bid_limit=parse_number(get("max_cpc_bid_limit")),
            start_date=get("start_date"),
            end_date=get("end_date"),
            ad_schedule=get("ad_schedule"),
            status=get("campaign_status") or DEFAULT_STATUS,
        )

    def _ad_group(self, campaign: str, ad_group: str, get) -> AdGroupRecord:
        return AdGroupRecord(
            import_id=self.import_id,
            account_id=self.account_id,
            campaign_name=campaign,
            ad_group_name=ad_group,
            ad_group_type=get("ad_group_type"),
            bids=AdGroupBids(
                max_cpc=parse_number(get("max_cpc")),
                max_cpm=parse_number(get("max_cpm")),
                target_cpc=parse_number(get("target_cpc")),
                target_roas=parse_number(get("ad_group_target_roas")),
            ),
            device_bid_modifiers=DeviceBidModifiers(
                desktop=parse_number(get("desktop_bid_modifier")),
                mobile=parse_number(get("mobile_bid_modifier")),
                tablet=parse_number(get("tablet_bid_modifier")),
            ),
            optimized_targeting=get("optimized_targeting"),
            status=get("ad_group_status") or DEFAULT_STATUS,
        )

    def _keyword(self, campaign: Optional[str], ad_group: Optional[str], keyword: str, get) -> KeywordRecord:
        return KeywordRecord(
            import_id=self.import_id,
            account_id=self.account_id,
            campaign_name=campaign or "",
            ad_group_name=ad_group or "",
            keyword=keyword,
            match_type=normalize_match_type(get("keyword_match_type")),
            bids=KeywordBids(
                first_page_bid=parse_number(get("first_page_bid")),
                top_of_page_bid=parse_number(get("top_of_page_bid")),
                first_position_bid=parse_number(get("first_position_bid")),
            ),
            quality=KeywordQuality(
                quality_score=parse_number(get("quality_score")),
                landing_page_experience=get("landing_page_experience"),
                expected_ctr=get("expected_ctr"),
                ad_relevance=get("ad_relevance"),
            ),
            status=get("status") or DEFAULT_STATUS,
        )

    def _ad(self, campaign: Optional[str], ad_group: Optional[str], ad_type: str, columns: Sequence[str], get) -> AdRecord:
        return AdRecord(
            import_id=self.import_id,
            account_id=self.account_id,
            campaign_name=campaign or "",
            ad_group_name=ad_group or "",
            ad_type=ad_type,
            final_url=get("final_url"),
            headlines=self.column_map.headlines(columns),
            descriptions=self.column_map.descriptions(columns),
            path1=get("path1"),
            path2=get("path2"),
            status=get("status") or DEFAULT_STATUS,
            approval_status=get("approval_status"),
            ad_strength=get("ad_strength"),
        )
