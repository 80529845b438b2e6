"""Browser side - collection agent contract, Playwright session, directory agent."""

from .base import AttemptContext, CollectionAgent
from .session import BrowserSession, make_user_agent, resolve_proxy
from .directory_agent import DirectoryAgent, parse_results

__all__ = [
    "AttemptContext",
    "CollectionAgent",
    "BrowserSession",
    "make_user_agent",
    "resolve_proxy",
    "DirectoryAgent",
    "parse_results",
]
