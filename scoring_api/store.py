# scoring_api/store.py
from __future__ import annotations

import copy
import uuid
from typing import Any, Dict, List, Optional

# Simple in-memory document store (sufficient for single-instance deploys)
# "namespace:key" -> document
_documents: Dict[str, Dict[str, Any]] = {}

MATCHES = "match"
PLAYERS = "player"
TEAMS = "team"


def make_key(namespace: str, key: str) -> str:
    """
    Enforce namespaced keys to avoid collisions.
    Example:
      make_key("match", "a1b2") -> "match:a1b2"
    """
    namespace = str(namespace).strip()
    key = str(key).strip()
    if not namespace or not key:
        raise ValueError("Store namespace and key must be non-empty")
    return f"{namespace}:{key}"


def new_id() -> str:
    return uuid.uuid4().hex


def get(namespace: str, key: str) -> Optional[Dict[str, Any]]:
    """Returns a copy; callers mutate freely and must put() to persist."""
    doc = _documents.get(make_key(namespace, key))
    if doc is None:
        return None
    return copy.deepcopy(doc)


def put(namespace: str, key: str, doc: Dict[str, Any]) -> None:
    _documents[make_key(namespace, key)] = copy.deepcopy(doc)


def delete(namespace: str, key: str) -> bool:
    return _documents.pop(make_key(namespace, key), None) is not None


def list_documents(namespace: str) -> List[Dict[str, Any]]:
    prefix = f"{namespace}:"
    return [copy.deepcopy(v) for k, v in _documents.items() if k.startswith(prefix)]


def clear() -> None:
    _documents.clear()
