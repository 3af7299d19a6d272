"""
Skapp name resolution — turn the embedding page's URL into a namespace.

A skapp served through a portal lives under ``<skapp>.<portal_domain>``; the
portal suffix is stripped so the same skapp gets the same namespace on every
portal. Hosts outside the portal (localhost, custom domains) are used as-is.
"""

from __future__ import annotations

import logging
from typing import Optional
from urllib.parse import urlsplit

from socialdac.engine.errors import SocialDACInitError

logger = logging.getLogger("socialdac.engine.domains")


def hostname_from_referrer(referrer: Optional[str]) -> str:
    """Extract the lower-cased hostname from the caller's referrer URL."""
    if not referrer:
        raise SocialDACInitError("No referrer, cannot resolve calling skapp", referrer=referrer)
    try:
        hostname = urlsplit(referrer).hostname
    except ValueError as e:
        raise SocialDACInitError(
            f"Invalid referrer URL: {referrer}", referrer=referrer
        ) from e
    if not hostname:
        raise SocialDACInitError(f"Referrer has no hostname: {referrer}", referrer=referrer)
    return hostname.lower()


def extract_domain(hostname: str, portal_domain: str) -> str:
    """
    Strip the portal domain from *hostname*.

    >>> extract_domain("myskapp.hns.siasky.net", "siasky.net")
    'myskapp.hns'
    >>> extract_domain("localhost", "siasky.net")
    'localhost'
    """
    hostname = hostname.strip().rstrip("/").lower()
    portal_domain = portal_domain.strip().lower()

    if portal_domain and hostname.endswith("." + portal_domain):
        domain = hostname[: -(len(portal_domain) + 1)]
    elif hostname == portal_domain:
        domain = ""
    else:
        domain = hostname

    if not domain:
        raise SocialDACInitError(
            f"Hostname '{hostname}' is the portal itself, not a skapp",
            hostname=hostname,
        )
    return domain


def resolve_skapp(referrer: Optional[str], portal_domain: str) -> str:
    """Resolve the skapp namespace for a caller from its referrer URL."""
    skapp = extract_domain(hostname_from_referrer(referrer), portal_domain)
    logger.debug("loaded from skapp %s", skapp)
    return skapp
