# =============================================================================
# core/errors.py - Error taxonomy and remediation hints
# =============================================================================

from typing import Optional

from ldap3.core.exceptions import (
    LDAPCommunicationError,
    LDAPInvalidFilterError,
    LDAPSocketOpenError,
)


# LDAP result codes we can give a concrete remediation for
_RESULT_CODE_HINTS = {
    32: "check the base DN (noSuchObject)",
    34: "check the base DN (invalidDNSyntax)",
    10: "check the base DN (referral to another naming context)",
    49: "check permissions (invalid credentials)",
    50: "check permissions (insufficient access rights)",
    8: "check permissions (strong authentication required)",
    51: "check connectivity (server busy)",
    52: "check connectivity (server unavailable)",
    87: "check filter syntax",
}


class InvalidInput(ValueError):
    """Raised for a domain or namespace that cannot form a search base"""


class DirectoryQueryError(Exception):
    """Raised when a directory search cannot be issued or is rejected"""

    def __init__(self, message: str, hint: str = "", result_code: Optional[int] = None,
                 category: Optional[str] = None):
        super().__init__(message)
        self.hint = hint
        self.result_code = result_code
        self.category = category

    def __str__(self) -> str:
        message = super().__str__()
        if self.hint:
            return f"{message} - {self.hint}"
        return message


def remediation_hint(result_code: Optional[int] = None, error: Optional[BaseException] = None) -> str:
    """Pick an actionable hint for a failed search"""
    if result_code is not None and result_code in _RESULT_CODE_HINTS:
        return _RESULT_CODE_HINTS[result_code]

    if isinstance(error, LDAPInvalidFilterError):
        return "check filter syntax"
    if isinstance(error, (LDAPSocketOpenError, LDAPCommunicationError, ConnectionError, TimeoutError)):
        return "check connectivity"

    return "check base DN, permissions, connectivity and filter syntax"
