"""HTTP adapter – async httpx client."""
from mp_permissions.adapters.http.client import HttpxHttpClient

__all__ = ["HttpxHttpClient"]
