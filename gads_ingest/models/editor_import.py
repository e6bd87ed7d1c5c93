"""
Google Ads Editor Import Models

One ledger row per imported export (deduplicated by a fingerprint of the
file prefix) plus the campaign / ad group / keyword / ad rows extracted from it.
Entity rows are append-only: written once during processing, never updated.
"""
from sqlalchemy import Column, Integer, String, Float, DateTime, Text, JSON, ForeignKey
from datetime import datetime

from gads_ingest.models.base import Base


class EditorImport(Base):
    """Import ledger entry for one editor export file"""
    __tablename__ = "gads_editor_imports"

    id = Column(Integer, primary_key=True, index=True)

    account_id = Column(String, nullable=False, index=True)
    account_name = Column(String, nullable=False)
    file_name = Column(String, nullable=False)
    file_hash = Column(String(128), nullable=False, unique=True, index=True)
    # SHA-256 of the first 10KB; "<hash>_<millis>" when re-imported with force

    imported_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    status = Column(String(20), nullable=False, index=True)
    # Status: processing, completed, failed
    error = Column(Text, nullable=True)
    progress = Column(Integer, default=0, nullable=False)  # 0-100

    # Stats
    total_rows = Column(Integer, default=0, nullable=False)
    processed_rows = Column(Integer, default=0, nullable=False)
    campaigns = Column(Integer, default=0, nullable=False)
    ad_groups = Column(Integer, default=0, nullable=False)
    keywords = Column(Integer, default=0, nullable=False)
    ads = Column(Integer, default=0, nullable=False)

    # Partial-loss accounting (batches whose insert failed)
    failed_batches = Column(Integer, default=0, nullable=False)
    lost_records = Column(Integer, default=0, nullable=False)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "account_id": self.account_id,
            "account_name": self.account_name,
            "file_name": self.file_name,
            "file_hash": self.file_hash,
            "imported_at": self.imported_at.isoformat() if self.imported_at else None,
            "status": self.status,
            "error": self.error,
            "progress": self.progress,
            "stats": {
                "total_rows": self.total_rows,
                "processed_rows": self.processed_rows,
                "campaigns": self.campaigns,
                "ad_groups": self.ad_groups,
                "keywords": self.keywords,
                "ads": self.ads,
                "failed_batches": self.failed_batches,
                "lost_records": self.lost_records,
            },
        }

    def __repr__(self):
        return f"<EditorImport {self.file_name} [{self.status}]>"


class EditorCampaign(Base):
    """Campaign settings captured from an editor export"""
    __tablename__ = "gads_editor_campaigns"

    id = Column(Integer, primary_key=True, index=True)
    import_id = Column(Integer, ForeignKey("gads_editor_imports.id"), nullable=False, index=True)
    account_id = Column(String, nullable=False, index=True)

    campaign_name = Column(String, nullable=False, index=True)
    labels = Column(JSON, nullable=False, default=list)
    campaign_type = Column(String, nullable=False, default="")
    # Types: Search, Display, Performance Max, Shopping, etc.
    networks = Column(String, nullable=True)
    budget = Column(Float, nullable=True)
    budget_type = Column(String, nullable=True)

    # Bidding
    bid_strategy_type = Column(String, nullable=True)
    bid_strategy_name = Column(String, nullable=True)
    target_cpa = Column(Float, nullable=True)
    target_roas = Column(Float, nullable=True)
    max_cpc_bid_limit = Column(Float, nullable=True)

    # Schedule
    start_date = Column(String, nullable=True)
    end_date = Column(String, nullable=True)
    ad_schedule = Column(Text, nullable=True)

    status = Column(String, nullable=False)

    def __repr__(self):
        return f"<EditorCampaign {self.campaign_name}>"


class EditorAdGroup(Base):
    """Ad group settings captured from an editor export"""
    __tablename__ = "gads_editor_ad_groups"

    id = Column(Integer, primary_key=True, index=True)
    import_id = Column(Integer, ForeignKey("gads_editor_imports.id"), nullable=False, index=True)
    account_id = Column(String, nullable=False, index=True)

    campaign_name = Column(String, nullable=False, index=True)
    ad_group_name = Column(String, nullable=False, index=True)
    ad_group_type = Column(String, nullable=True)

    # Bids
    max_cpc = Column(Float, nullable=True)
    max_cpm = Column(Float, nullable=True)
    target_cpc = Column(Float, nullable=True)
    target_roas = Column(Float, nullable=True)

    # Device bid modifiers
    desktop_bid_modifier = Column(Float, nullable=True)
    mobile_bid_modifier = Column(Float, nullable=True)
    tablet_bid_modifier = Column(Float, nullable=True)

    optimized_targeting = Column(String, nullable=True)
    status = Column(String, nullable=False)

    def __repr__(self):
        return f"<EditorAdGroup {self.campaign_name} / {self.ad_group_name}>"


class EditorKeyword(Base):
    """Keyword row from an editor export, including quality score columns"""
    __tablename__ = "gads_editor_keywords"

    id = Column(Integer, primary_key=True, index=True)
    import_id = Column(Integer, ForeignKey("gads_editor_imports.id"), nullable=False, index=True)
    account_id = Column(String, nullable=False, index=True)

    campaign_name = Column(String, nullable=False, index=True)
    ad_group_name = Column(String, nullable=False, index=True)
    keyword = Column(String, nullable=False, index=True)
    match_type = Column(String(10), nullable=False)
    # Match type: Exact, Phrase, Broad

    # Bid estimates
    first_page_bid = Column(Float, nullable=True)
    top_of_page_bid = Column(Float, nullable=True)
    first_position_bid = Column(Float, nullable=True)

    # Quality (1-10 score, plus Above average / Average / Below average components)
    quality_score = Column(Float, nullable=True, index=True)
    landing_page_experience = Column(String, nullable=True)
    expected_ctr = Column(String, nullable=True)
    ad_relevance = Column(String, nullable=True)

    status = Column(String, nullable=False)

    def __repr__(self):
        return f"<EditorKeyword {self.keyword} [{self.match_type}]>"


class EditorAd(Base):
    """Ad row from an editor export"""
    __tablename__ = "gads_editor_ads"

    id = Column(Integer, primary_key=True, index=True)
    import_id = Column(Integer, ForeignKey("gads_editor_imports.id"), nullable=False, index=True)
    account_id = Column(String, nullable=False, index=True)

    campaign_name = Column(String, nullable=False, index=True)
    ad_group_name = Column(String, nullable=False, index=True)
    ad_type = Column(String, nullable=False)
    final_url = Column(Text, nullable=True)

    headlines = Column(JSON, nullable=False, default=list)     # up to 15, in column order
    descriptions = Column(JSON, nullable=False, default=list)  # up to 5, in column order
    path1 = Column(String, nullable=True)
    path2 = Column(String, nullable=True)

    status = Column(String, nullable=False)
    approval_status = Column(String, nullable=True)
    ad_strength = Column(String, nullable=True, index=True)

    def __repr__(self):
        return f"<EditorAd {self.ad_type} in {self.ad_group_name}>"
