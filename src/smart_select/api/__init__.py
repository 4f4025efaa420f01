"""Smart Select API.

Exposes analysis and selection over HTTP.
"""

from smart_select.api.router import api_router

__all__ = ["api_router"]
