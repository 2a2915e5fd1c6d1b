"""Services package."""

from src.services.campaign_validation import CampaignValidationService
from src.services.context_stores import FileBestPracticesStore, FileClientContextStore

__all__ = [
    "CampaignValidationService",
    "FileBestPracticesStore",
    "FileClientContextStore",
]
