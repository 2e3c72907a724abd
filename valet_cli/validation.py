"""Input validation for site names and domains"""

import logging
import re

from .utils import msg_error

logger = logging.getLogger("valet.validation")

# One DNS label: alphanumerics and inner hyphens, max 63 chars
_LABEL = re.compile(r"^[a-z0-9](?:[a-z0-9-]{0,61}[a-z0-9])?$", re.IGNORECASE)


def validate_site_name(name: str) -> bool:
    """Validate a site (link) name; dots allowed for sub-sites like api.shop"""
    if not name:
        msg_error("Site name cannot be empty")
        return False

    if "/" in name or name in {".", ".."}:
        msg_error("Site name cannot contain path separators")
        return False

    if len(name) > 253:
        msg_error("Site name too long (max 253 characters)")
        return False

    if not all(_LABEL.match(label) for label in name.split(".")):
        msg_error("Site name must contain only letters, numbers, hyphens and dots")
        logger.warning("Rejected site name: %s", name)
        return False

    return True


def validate_domain(domain: str) -> bool:
    """Validate a base domain such as ``dev`` or ``test``"""
    if not domain:
        msg_error("Domain cannot be empty")
        return False

    if "/" in domain or "://" in domain:
        msg_error("Domain must be a hostname only (no scheme or path)")
        return False

    if domain.startswith(".") or domain.endswith("."):
        msg_error("Domain must not start or end with a dot")
        return False

    if not all(_LABEL.match(label) for label in domain.split(".")):
        msg_error("Domain must contain only letters, numbers, hyphens and dots")
        logger.warning("Rejected domain: %s", domain)
        return False

    return True
