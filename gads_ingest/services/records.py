"""
Entity records extracted from editor export rows.

Records are immutable once built. `to_row()` flattens nested bid/quality
groups into the column layout of the gads_editor_* tables.
"""
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Dict, List, Optional


class RecordKind(str, Enum):
    CAMPAIGN = "campaigns"
    AD_GROUP = "ad_groups"
    KEYWORD = "keywords"
    AD = "ads"


DEFAULT_STATUS = "Enabled"


@dataclass(frozen=True)
class CampaignRecord:
    import_id: int
    account_id: str
    campaign_name: str
    campaign_type: str = ""
    labels: List[str] = field(default_factory=list)
    networks: Optional[str] = None
    budget: Optional[float] = None
    budget_type: Optional[str] = None
    bid_strategy_type: Optional[str] = None
    bid_strategy_name: Optional[str] = None
    target_cpa: Optional[float] = None
    target_roas: Optional[float] = None
    max_cpc_bid_limit: Optional[float] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    ad_schedule: Optional[str] = None
    status: str = DEFAULT_STATUS

    kind = RecordKind.CAMPAIGN

    def to_row(self) -> Dict:
        row = asdict(self)
        row["labels"] = list(self.labels)
        return row


@dataclass(frozen=True)
class AdGroupBids:
    max_cpc: Optional[float] = None
    max_cpm: Optional[float] = None
    target_cpc: Optional[float] = None
    target_roas: Optional[float] = None


@dataclass(frozen=True)
class DeviceBidModifiers:
    desktop: Optional[float] = None
    mobile: Optional[float] = None
    tablet: Optional[float] = None


@dataclass(frozen=True)
class AdGroupRecord:
    import_id: int
    account_id: str
    campaign_name: str
    ad_group_name: str
    ad_group_type: Optional[str] = None
    bids: AdGroupBids = field(default_factory=AdGroupBids)
    device_bid_modifiers: DeviceBidModifiers = field(default_factory=DeviceBidModifiers)
    optimized_targeting: Optional[str] = None
    status: str = DEFAULT_STATUS

    kind = RecordKind.AD_GROUP

    @property
    def key(self) -> str:
        return ad_group_key(self.campaign_name, self.ad_group_name)

    def to_row(self) -> Dict:
        return {
            "import_id": self.import_id,
            "account_id": self.account_id,
            "campaign_name": self.campaign_name,
            "ad_group_name": self.ad_group_name,
            "ad_group_type": self.ad_group_type,
            **asdict(self.bids),
            "desktop_bid_modifier": self.device_bid_modifiers.desktop,
            "mobile_bid_modifier": self.device_bid_modifiers.mobile,
            "tablet_bid_modifier": self.device_bid_modifiers.tablet,
            "optimized_targeting": self.optimized_targeting,
            "status": self.status,
        }


@dataclass(frozen=True)
class KeywordBids:
    first_page_bid: Optional[float] = None
    top_of_page_bid: Optional[float] = None
    first_position_bid: Optional[float] = None


@dataclass(frozen=True)
class KeywordQuality:
    quality_score: Optional[float] = None
    landing_page_experience: Optional[str] = None
    expected_ctr: Optional[str] = None
    ad_relevance: Optional[str] = None


@dataclass(frozen=True)
class KeywordRecord:
    import_id: int
    account_id: str
    campaign_name: str
    ad_group_name: str
    keyword: str
    match_type: str = "Broad"
    bids: KeywordBids = field(default_factory=KeywordBids)
    quality: KeywordQuality = field(default_factory=KeywordQuality)
    status: str = DEFAULT_STATUS

    kind = RecordKind.KEYWORD

    def to_row(self) -> Dict:
        return {
            "import_id": self.import_id,
            "account_id": self.account_id,
            "campaign_name": self.campaign_name,
            "ad_group_name": self.ad_group_name,
            "keyword": self.keyword,
            "match_type": self.match_type,
            **asdict(self.bids),
            **asdict(self.quality),
            "status": self.status,
        }


@dataclass(frozen=True)
class AdRecord:
    import_id: int
    account_id: str
    campaign_name: str
    ad_group_name: str
    ad_type: str
    final_url: Optional[str] = None
    headlines: List[str] = field(default_factory=list)
    descriptions: List[str] = field(default_factory=list)
    path1: Optional[str] = None
    path2: Optional[str] = None
    status: str = DEFAULT_STATUS
    approval_status: Optional[str] = None
    ad_strength: Optional[str] = None

    kind = RecordKind.AD

    def to_row(self) -> Dict:
        row = asdict(self)
        row["headlines"] = list(self.headlines)
        row["descriptions"] = list(self.descriptions)
        return row


def ad_group_key(campaign_name: str, ad_group_name: str) -> str:
    """Natural key of an ad group within one import."""
    return f"{campaign_name}|{ad_group_name}"
