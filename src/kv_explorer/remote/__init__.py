"""Client for the remote paginated KV HTTP API."""

from kv_explorer.remote.client import RemoteClient
from kv_explorer.remote.models import ApiEnvelope, ApiError, ResultInfo

__all__ = ["ApiEnvelope", "ApiError", "RemoteClient", "ResultInfo"]
