# =============================================================================
# core/models.py - Audit data models
# =============================================================================

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional


# userAccountControl bit 0x10000 (DONT_EXPIRE_PASSWORD) via LDAP_MATCHING_RULE_BIT_AND
_DONT_EXPIRE_PASSWORD = "(userAccountControl:1.2.840.113556.1.4.803:=65536)"


class AccountCategory(Enum):
    """Account categories audited for a non-expiring password"""
    USERS = ("users", f"(&(objectCategory=person)(objectClass=user){_DONT_EXPIRE_PASSWORD})")
    COMPUTERS = ("computers", f"(&(objectCategory=computer){_DONT_EXPIRE_PASSWORD})")

    def __init__(self, label: str, ldap_filter: str):
        self.label = label
        self.ldap_filter = ldap_filter


@dataclass(frozen=True)
class DirectoryEntryHandle:
    """Reference to one matched directory object, used for the live refresh"""
    dn: str
    path: str = ""


@dataclass(frozen=True)
class AttributeBag:
    """First values of the attributes returned for one directory entry"""
    name: Optional[str] = None
    distinguished_name: Optional[str] = None
    when_created: Optional[str] = None
    last_logon_timestamp: Optional[str] = None
    last_logon: Optional[str] = None
    pwd_last_set: Optional[str] = None

    @classmethod
    def from_ldap_response(cls, response: Dict[str, Any]) -> "AttributeBag":
        """Build from an ldap3 response dict ({'dn', 'attributes', 'raw_attributes'})"""
        attributes = response.get("attributes") or {}
        raw_attributes = response.get("raw_attributes") or {}

        return cls(
            name=_first_text(attributes, "name"),
            distinguished_name=_first_text(attributes, "distinguishedName") or response.get("dn") or None,
            when_created=_first_text(raw_attributes, "whenCreated"),
            last_logon_timestamp=_first_text(raw_attributes, "lastLogonTimestamp"),
            last_logon=_first_text(raw_attributes, "lastLogon"),
            pwd_last_set=_first_text(raw_attributes, "pwdLastSet"),
        )


@dataclass(frozen=True)
class Record:
    """One row of the audit report"""
    name: Optional[str] = None
    creation: Optional[datetime] = None
    last_logon: Optional[datetime] = None
    pwd_last_set: Optional[datetime] = None
    distinguished_name: Optional[str] = None


@dataclass
class EnumerationStats:
    """Statistics for one category's enumeration"""
    category: str = ""
    total_matches: int = 0
    processed: int = 0
    refresh_failures: int = 0

    @property
    def completion_rate(self) -> float:
        """Calculate processed percentage"""
        if self.total_matches == 0:
            return 100.0
        return (self.processed / self.total_matches) * 100


def _first_text(values: Dict[str, Any], key: str) -> Optional[str]:
    """First value of a possibly multi-valued attribute as text, or None"""
    value = _lookup(values, key)
    if isinstance(value, (list, tuple)):
        if not value:
            return None
        value = value[0]
    if value is None:
        return None
    if isinstance(value, bytes):
        value = value.decode("utf-8", errors="replace")
    text = str(value)
    return text if text != "" else None


def _lookup(values: Dict[str, Any], key: str) -> Any:
    # attribute names are case-insensitive in LDAP
    if key in values:
        return values[key]
    lowered = key.lower()
    for candidate, value in values.items():
        if candidate.lower() == lowered:
            return value
    return None
