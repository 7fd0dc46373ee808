from __future__ import annotations

from typing import Any, Dict, List, Optional

import pytest

from core.errors import DirectoryQueryError
from core.models import AttributeBag


def ldap_entry(dn: str, name: str, **raw: str) -> Dict[str, Any]:
    """Response dict shaped like ldap3's paged search output"""
    return {
        "type": "searchResEntry",
        "dn": dn,
        "attributes": {"name": name, "distinguishedName": dn},
        "raw_attributes": {key: [value.encode("utf-8")] for key, value in raw.items()},
    }


class FakeDirectoryClient:
    """In-memory stand-in for ActiveDirectoryClient"""

    def __init__(self, entries: Optional[Dict[str, List[Dict[str, Any]]]] = None,
                 refreshed: Optional[Dict[str, AttributeBag]] = None,
                 failing_refresh: Optional[set] = None,
                 search_error: Optional[Exception] = None):
        self.entries = entries or {}
        self.refreshed = refreshed or {}
        self.failing_refresh = failing_refresh or set()
        self.search_error = search_error
        self.searches: List[tuple] = []
        self.refresh_calls: List[str] = []

    def paged_search(self, search_base, search_filter, attributes, page_size=1000):
        self.searches.append((search_base, search_filter, tuple(attributes), page_size))
        if self.search_error is not None:
            raise self.search_error
        return list(self.entries.get(search_filter, []))

    def refresh_attributes(self, dn: str) -> Optional[AttributeBag]:
        self.refresh_calls.append(dn)
        if dn in self.failing_refresh:
            raise ConnectionError("connection reset by peer")
        return self.refreshed.get(dn)

    def entry_path(self, dn: str) -> str:
        return f"LDAP://dc01.example.com/{dn}"


@pytest.fixture()
def fake_client_factory():
    return FakeDirectoryClient


@pytest.fixture()
def query_error() -> DirectoryQueryError:
    return DirectoryQueryError("Search under DC=example,DC=com was rejected", hint="check the base DN",
                               result_code=32)


@pytest.fixture()
def make_entry():
    return ldap_entry
