# =============================================================================
# core/attribute_resolver.py - Two-tier attribute resolution
# =============================================================================

import logging
from datetime import datetime
from typing import Any, Callable, Optional

from core.models import AttributeBag, DirectoryEntryHandle, Record
from core.timestamps import TimestampNormalizer


RefreshFunc = Callable[[DirectoryEntryHandle], Optional[AttributeBag]]


def first_present(normalize: Callable[[Any], Optional[datetime]], *candidates: Any) -> Optional[datetime]:
    """Normalize candidates in order and return the first usable timestamp"""
    for candidate in candidates:
        value = normalize(candidate)
        if value is not None:
            return value
    return None


class AttributeResolver:
    """
    Builds a Record from a live refresh of the entry, falling back to the
    attributes cached in the search result.

    Tier 1 is the refreshed entry, tier 2 the cached search attributes. For
    last logon, lastLogonTimestamp is exhausted across both tiers before the
    per-DC lastLogon attribute is tried.
    """

    def __init__(self, refresh: RefreshFunc, normalizer: Optional[TimestampNormalizer] = None):
        self.refresh = refresh
        self.normalizer = normalizer or TimestampNormalizer()
        self.refresh_failures = 0
        self.logger = logging.getLogger(self.__class__.__name__)

    def resolve(self, handle: DirectoryEntryHandle, cached: AttributeBag) -> Record:
        """Resolve one directory entry into a report record"""
        refreshed = self._try_refresh(handle) or AttributeBag()

        return Record(
            name=cached.name,
            creation=first_present(
                self.normalizer.from_general_date,
                refreshed.when_created, cached.when_created
            ),
            last_logon=first_present(
                self.normalizer.from_file_time,
                refreshed.last_logon_timestamp, cached.last_logon_timestamp,
                refreshed.last_logon, cached.last_logon
            ),
            pwd_last_set=first_present(
                self.normalizer.from_file_time,
                refreshed.pwd_last_set, cached.pwd_last_set
            ),
            distinguished_name=cached.distinguished_name,
        )

    def _try_refresh(self, handle: DirectoryEntryHandle) -> Optional[AttributeBag]:
        """Live refresh of one entry; None when it fails or returns nothing"""
        try:
            return self.refresh(handle)
        except Exception as e:
            self.refresh_failures += 1
            self.logger.debug(f"Refresh of {handle.dn} failed, using cached attributes: {e}")
            return None
