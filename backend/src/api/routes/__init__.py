"""API route handlers for Preflight."""

from src.api.routes import campaigns as campaigns
from src.api.routes import copy_analysis as copy_analysis
from src.api.routes import health as health
