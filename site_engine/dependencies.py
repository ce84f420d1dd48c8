"""
Shared FastAPI dependencies
"""
from functools import lru_cache

from slowapi import Limiter
from slowapi.util import get_remote_address

from site_engine.config import settings
from site_engine.services.netlify_deployer import NetlifyDeployer
from site_engine.services.site_generator import SiteGenerator
from site_engine.services.workspace import WorkspaceManager, workspace_manager


# Initialize rate limiter
limiter = Limiter(key_func=get_remote_address, enabled=settings.RATE_LIMIT_ENABLED)


def get_generator() -> SiteGenerator:
    return SiteGenerator()


@lru_cache(maxsize=1)
def get_deployer() -> NetlifyDeployer:
    """One deployer per process so the concurrency policy covers every caller"""
    return NetlifyDeployer()


def get_workspace_manager() -> WorkspaceManager:
    return workspace_manager
