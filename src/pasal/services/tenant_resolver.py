"""Tenant resolution from the Host header.

Learn: the only input is the Host header; no query param, cookie, or
``X-Tenant-Id`` can select a tenant. Resolution is a total function: any
host string, however malformed, maps to a TenantContext (possibly with no
subdomain). It never raises and never touches the database.

    acme.pasal.com        → "acme"
    www.pasal.com         → absent (system label)
    pasal.com             → absent (apex)
    acme.pasal.local:3000 → "acme" (local dev)
    localhost, 127.0.0.1  → absent
"""

import ipaddress
import re
from dataclasses import dataclass
from typing import Optional

# First labels that belong to the platform, not to a tenant.
SYSTEM_LABELS = frozenset(
    {"www", "api", "admin", "app", "mail", "ftp", "cdn", "static"}
)

# Never available for registration.
RESERVED_SUBDOMAINS = SYSTEM_LABELS | frozenset(
    {
        "dashboard",
        "login",
        "signup",
        "register",
        "account",
        "settings",
        "help",
        "support",
        "blog",
        "docs",
        "status",
    }
)

SUBDOMAIN_PATTERN = re.compile(r"^[a-z0-9]([a-z0-9-]{1,61}[a-z0-9])?$")
SUBDOMAIN_MIN_LENGTH = 3
SUBDOMAIN_MAX_LENGTH = 63


def is_valid_subdomain(candidate: str) -> bool:
    """Lowercase DNS label, 3-63 chars, no leading/trailing hyphen."""
    return (
        SUBDOMAIN_MIN_LENGTH <= len(candidate) <= SUBDOMAIN_MAX_LENGTH
        and SUBDOMAIN_PATTERN.match(candidate) is not None
    )


@dataclass(frozen=True)
class TenantContext:
    subdomain: Optional[str] = None

    @property
    def is_tenant_scoped(self) -> bool:
        return self.subdomain is not None


NO_TENANT = TenantContext()


class TenantResolver:
    """Maps a Host header to a TenantContext. Built once at startup."""

    def __init__(self, local_dev_suffix: str = ".local"):
        self.local_dev_suffix = local_dev_suffix.lower()

    def resolve(self, host: Optional[str]) -> TenantContext:
        hostname = normalize_host(host or "")
        if not hostname or hostname == "localhost" or _is_ip_literal(hostname):
            return NO_TENANT

        labels = hostname.split(".")

        if hostname.endswith(self.local_dev_suffix):
            # mystore.pasal.local → mystore
            if len(labels) >= 3 and labels[0]:
                return TenantContext(labels[0])
            return NO_TENANT

        if len(labels) <= 2:
            return NO_TENANT

        first = labels[0]
        if not first or first in SYSTEM_LABELS:
            return NO_TENANT
        return TenantContext(first)


def normalize_host(host: str) -> str:
    """Strip the port, lowercase, drop a trailing dot.

    Bracketed IPv6 literals (``[::1]:8000``) lose their brackets.
    """
    host = host.strip().lower()
    if host.startswith("["):
        end = host.find("]")
        return host[1:end] if end != -1 else ""
    if host.count(":") == 1:
        host = host.split(":", 1)[0]
    return host.rstrip(".")


def _is_ip_literal(hostname: str) -> bool:
    try:
        ipaddress.ip_address(hostname)
    except ValueError:
        return False
    return True
