# =============================================================================
# core/namespace.py - Search base resolution
# =============================================================================

from core.errors import InvalidInput


DC_MARKER = "DC="


def resolve_namespace(value: str) -> str:
    """
    Turn a dotted domain name into an LDAP search base.

    Input that already contains a DC= component (any case) is taken as a
    distinguished name and returned as given.

    Args:
        value: Domain name such as "example.com" or a DN such as "DC=example,DC=com"

    Returns:
        Search base in "DC=label1,DC=label2,..." form

    Raises:
        InvalidInput: empty input, a single label, or an empty label
    """
    trimmed = (value or "").strip()
    if not trimmed:
        raise InvalidInput("Domain or search base must not be empty")

    if DC_MARKER.lower() in trimmed.lower():
        return trimmed

    labels = [label.strip() for label in trimmed.split(".")]
    if len(labels) < 2:
        raise InvalidInput(f"'{trimmed}' is not a dotted domain name (expected e.g. example.com)")
    if any(not label for label in labels):
        raise InvalidInput(f"'{trimmed}' contains an empty domain label")

    return DC_MARKER + ",DC=".join(labels)


def namespace_labels(namespace: str) -> list:
    """Return the DC label values of a search base, in order"""
    labels = []
    for component in namespace.split(","):
        key, _, label = component.strip().partition("=")
        if key.upper() == "DC" and label:
            labels.append(label)
    return labels
