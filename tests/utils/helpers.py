"""Test helper functions."""

import json
from typing import Any, Dict, Optional
from unittest.mock import MagicMock

QUERY_METHODS = ("select", "eq", "in_", "or_", "gte", "lte", "order", "limit", "insert", "update", "delete")


def create_query_chain(data: Any = None, count: Optional[int] = None) -> MagicMock:
    """PostgREST request builder mock whose filter methods return itself."""
    query = MagicMock()
    for method in QUERY_METHODS:
        getattr(query, method).return_value = query
    query.execute.return_value = MagicMock(data=data if data is not None else [], count=count)
    return query


def create_supabase_client(query: Optional[MagicMock] = None) -> MagicMock:
    """Supabase client mock whose every table returns the same query chain."""
    client = MagicMock()
    client.table.return_value = query if query is not None else create_query_chain()
    return client


def create_vercel_request(
    method: str = "GET",
    path: str = "/api/listings/search",
    body: Any = None,
    headers: Dict[str, str] = None,
    query: Dict[str, Any] = None,
    token: Optional[str] = None,
) -> Dict[str, Any]:
    """Create a Vercel request object for testing."""
    headers = dict(headers or {"content-type": "application/json"})
    if token:
        headers["authorization"] = f"Bearer {token}"

    return {
        "method": method,
        "path": path,
        "headers": headers,
        "body": json.dumps(body) if isinstance(body, dict) else body,
        "query": query or {},
    }


def response_json(response: Dict[str, Any]) -> Any:
    return json.loads(response["body"])
