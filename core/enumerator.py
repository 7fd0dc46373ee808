# =============================================================================
# core/enumerator.py - Paged enumeration of non-expiring password accounts
# =============================================================================

import logging
from typing import Callable, Iterator, List, Optional

from core.ad_client import ActiveDirectoryClient
from core.attribute_resolver import AttributeResolver
from core.errors import DirectoryQueryError, remediation_hint
from core.models import AccountCategory, AttributeBag, DirectoryEntryHandle, EnumerationStats, Record


SEARCH_ATTRIBUTES = [
    "name", "distinguishedName", "whenCreated",
    "lastLogonTimestamp", "lastLogon", "pwdLastSet"
]
DEFAULT_PAGE_SIZE = 1000

ProgressFunc = Callable[[int, int], None]


class EntryEnumerator:
    """Searches one account category and resolves every match into a Record"""

    def __init__(self, ad_client: ActiveDirectoryClient, resolver: Optional[AttributeResolver] = None,
                 page_size: int = DEFAULT_PAGE_SIZE, progress: Optional[ProgressFunc] = None,
                 progress_interval: int = 100):
        self.ad_client = ad_client
        self.resolver = resolver or AttributeResolver(self._refresh_entry)
        self.page_size = page_size
        self.progress = progress
        self.progress_interval = max(1, progress_interval)
        self.last_stats: Optional[EnumerationStats] = None
        self.logger = logging.getLogger(self.__class__.__name__)

    def enumerate_accounts(self, namespace: str, category: AccountCategory) -> Iterator[Record]:
        """
        Yield a Record for every account of the category under the namespace.

        The whole paged search completes before the first Record is yielded,
        so a DirectoryQueryError leaves the caller with no records at all.

        Raises:
            DirectoryQueryError: the search could not be issued or was rejected
        """
        self.logger.info(f"Searching {category.label} with non-expiring passwords under {namespace}")
        entries = self._search(namespace, category)

        stats = EnumerationStats(category=category.label, total_matches=len(entries))
        failures_before = self.resolver.refresh_failures
        self.last_stats = stats

        for response in entries:
            cached = AttributeBag.from_ldap_response(response)
            dn = cached.distinguished_name or response.get("dn", "")
            handle = DirectoryEntryHandle(dn=dn, path=self._entry_path(dn))

            record = self.resolver.resolve(handle, cached)
            stats.processed += 1
            stats.refresh_failures = self.resolver.refresh_failures - failures_before
            self._report_progress(stats)

            yield record

        self.log_statistics(stats)

    def _search(self, namespace: str, category: AccountCategory) -> List[dict]:
        try:
            return self.ad_client.paged_search(namespace, category.ldap_filter, SEARCH_ATTRIBUTES, self.page_size)
        except DirectoryQueryError as e:
            e.category = category.label
            raise
        except Exception as e:
            raise DirectoryQueryError(
                f"Search for {category.label} under {namespace} failed: {e}",
                hint=remediation_hint(error=e),
                category=category.label
            ) from e

    def _refresh_entry(self, handle: DirectoryEntryHandle) -> Optional[AttributeBag]:
        return self.ad_client.refresh_attributes(handle.dn)

    def _entry_path(self, dn: str) -> str:
        entry_path = getattr(self.ad_client, "entry_path", None)
        return entry_path(dn) if entry_path else dn

    def _report_progress(self, stats: EnumerationStats) -> None:
        if self.progress:
            self.progress(stats.processed, stats.total_matches)

        message = f"{stats.processed} of {stats.total_matches} processed"
        if stats.processed % self.progress_interval == 0 or stats.processed == stats.total_matches:
            self.logger.info(f"{stats.category}: {message}")
        else:
            self.logger.debug(f"{stats.category}: {message}")

    def log_statistics(self, stats: EnumerationStats) -> None:
        """Log enumeration statistics"""
        self.logger.info(f"{stats.category}: {stats.processed} account(s) with non-expiring passwords")
        if stats.refresh_failures:
            self.logger.info(
                f"{stats.category}: live refresh unavailable for {stats.refresh_failures} "
                f"entr{'y' if stats.refresh_failures == 1 else 'ies'}, cached attributes used"
            )
