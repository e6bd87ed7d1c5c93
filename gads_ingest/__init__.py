"""Google Ads Editor export ingest service"""

__version__ = "1.0.0"
