# =============================================================================
# core/ad_client.py - Read-only Active Directory client
# =============================================================================

import logging
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

from ldap3 import ALL, BASE, SUBTREE, Connection, Server
from ldap3.core.exceptions import LDAPException

from core.errors import DirectoryQueryError, remediation_hint
from core.models import AttributeBag


PAGED_RESULTS_OID = "1.2.840.113556.1.4.319"
REFRESH_ATTRIBUTES = ["whenCreated", "lastLogonTimestamp", "lastLogon", "pwdLastSet"]


class ActiveDirectoryClient:
    """Active Directory client for paged searches and per-entry attribute refreshes"""

    def __init__(self, server_url: str, username: str, password: str,
                 use_ssl: bool = False, connect_timeout: Optional[int] = None):
        self.server_url = server_url
        self.username = username
        self.password = password
        self.use_ssl = use_ssl
        self.connect_timeout = connect_timeout
        self.connection: Optional[Connection] = None
        self.logger = logging.getLogger(__name__)

    def __enter__(self):
        """Context manager entry"""
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit"""
        self.disconnect()

    @property
    def host(self) -> str:
        """Server host name without scheme or port"""
        parsed = urlparse(self.server_url if "://" in self.server_url else f"ldap://{self.server_url}")
        return parsed.hostname or self.server_url

    def connect(self) -> bool:
        """Establish connection to Active Directory"""
        try:
            server = Server(self.server_url, **self._server_options())
            self.connection = Connection(
                server,
                user=self.username,
                password=self.password,
                auto_bind=True,
                read_only=True
            )
            self.logger.info(f"Successfully connected to Active Directory at {self.host}")
            return True
        except Exception as e:
            self.logger.error(f"Failed to connect to AD: {e}")
            return False

    def _server_options(self) -> Dict[str, Any]:
        """ldap3 Server options; an ldaps:// scheme or explicit port in the URL wins"""
        parsed = urlparse(self.server_url if "://" in self.server_url else f"ldap://{self.server_url}")
        use_ssl = self.use_ssl or parsed.scheme.lower() == "ldaps"
        options: Dict[str, Any] = {
            "use_ssl": use_ssl,
            "get_info": ALL,
            "connect_timeout": self.connect_timeout
        }
        if parsed.port is None:
            options["port"] = 636 if use_ssl else 389
        return options

    def disconnect(self) -> None:
        """Close Active Directory connection"""
        if self.connection:
            self.connection.unbind()
            self.connection = None
            self.logger.info("Disconnected from Active Directory")

    def entry_path(self, dn: str) -> str:
        """ADsPath-style reference for an entry"""
        return f"LDAP://{self.host}/{dn}"

    def paged_search(self, search_base: str, search_filter: str, attributes: List[str],
                     page_size: int = 1000) -> List[Dict[str, Any]]:
        """
        Run a subtree search with the simple paged results control.

        Every page is collected before returning so a failure on any page
        surfaces before callers see a single entry.

        Returns:
            ldap3 response dicts of type searchResEntry, in server order

        Raises:
            DirectoryQueryError: not connected, rejected search or LDAP failure
        """
        if not self.connection:
            raise DirectoryQueryError("Not connected to Active Directory", hint="check connectivity")

        entries: List[Dict[str, Any]] = []
        cookie = None
        page = 0

        try:
            while True:
                self.connection.search(
                    search_base=search_base,
                    search_filter=search_filter,
                    search_scope=SUBTREE,
                    attributes=attributes,
                    paged_size=page_size,
                    paged_cookie=cookie
                )
                self._raise_for_result(search_base)

                page += 1
                page_entries = [
                    response for response in (self.connection.response or [])
                    if response.get("type") == "searchResEntry"
                ]
                entries.extend(page_entries)
                self.logger.debug(f"LDAP page {page}: {len(page_entries)} entries")

                cookie = self._paging_cookie()
                if not cookie:
                    break

        except LDAPException as e:
            self.logger.debug(f"Search under {search_base} raised {e.__class__.__name__}: {e}")
            raise DirectoryQueryError(
                f"Search under {search_base} failed: {e}",
                hint=remediation_hint(error=e)
            ) from e

        self.logger.info(f"Search under {search_base} returned {len(entries)} entries in {page} page(s)")
        return entries

    def refresh_attributes(self, dn: str) -> Optional[AttributeBag]:
        """Fetch the temporal attributes of a single entry straight from the directory"""
        if not self.connection:
            raise ConnectionError("Not connected to Active Directory")

        self.connection.search(
            search_base=dn,
            search_filter="(objectClass=*)",
            search_scope=BASE,
            attributes=REFRESH_ATTRIBUTES
        )

        for response in self.connection.response or []:
            if response.get("type") == "searchResEntry":
                return AttributeBag.from_ldap_response(response)
        return None

    def _raise_for_result(self, search_base: str) -> None:
        result = self.connection.result or {}
        code = result.get("result", 0)
        if code == 0:
            return
        description = result.get("description") or result.get("message") or "unknown error"
        raise DirectoryQueryError(
            f"Search under {search_base} was rejected: {description} (result code {code})",
            hint=remediation_hint(result_code=code),
            result_code=code
        )

    def _paging_cookie(self) -> Optional[bytes]:
        result = self.connection.result or {}
        try:
            return result["controls"][PAGED_RESULTS_OID]["value"]["cookie"]
        except (KeyError, TypeError):
            return None
