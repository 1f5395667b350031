"""Typed async clients for the external provider APIs.

Each client follows the same pattern:
- Takes the shared Settings object in __init__
- Exposes an `is_available` property (True when its credentials are set)
- Raises ConfigurationError before the first request if credentials are missing
- Returns result dicts with an `error` string for expected API failures
- Uses httpx.AsyncClient for HTTP calls
"""

from launchpad.clients.cloudflare import CloudflareClient
from launchpad.clients.github import GitHubClient
from launchpad.clients.namecheap import NamecheapClient
from launchpad.clients.vercel import VercelClient

__all__ = [
    "CloudflareClient",
    "GitHubClient",
    "NamecheapClient",
    "VercelClient",
]
