"""
Hostname normalization module.

Turns an arbitrary navigated URL into a lowercase hostname and reduces
hostnames to their registrable base domain.

Result conventions for normalize_hostname():
- a hostname string for URLs with an authority component
- "" for schemes without one (browser-internal pages, data URIs, ...)
- None for input that cannot be parsed as a URL at all
"""

import re
from typing import Optional
from urllib.parse import unquote, urlsplit

import idna


# Schemes that never carry a navigable host, including vendor-internal pages
# whose "authority" (chrome://settings) is a page name, not a hostname
NO_AUTHORITY_SCHEMES = frozenset({
    "about", "blob", "brave", "chrome", "chrome-extension", "chrome-search",
    "chrome-untrusted", "data", "devtools", "edge", "file", "javascript",
    "mailto", "moz-extension", "opera", "safari-extension", "tel",
    "view-source", "vivaldi",
})

# Browsers accept these without the slashes: "https:example.org"
WEB_SCHEMES = frozenset({"http", "https"})

SCHEME_PATTERN = re.compile(r"^([a-zA-Z][a-zA-Z0-9+.\-]*):")

# After IDNA encoding a hostname only holds LDH characters, dots,
# underscores (seen in the wild) and colons for IPv6 literals
HOSTNAME_PATTERN = re.compile(r"^[a-z0-9.\-_:]+$")

# Known two-label public suffixes. Deliberately short: the protected set is
# small and curated, so a full public-suffix list is not needed.
MULTI_LABEL_TLDS = frozenset({
    "co.uk", "org.uk", "me.uk", "ltd.uk", "plc.uk", "net.uk", "ac.uk",
    "gov.uk", "nhs.uk", "sch.uk",
    "com.au", "org.au", "net.au", "gov.au", "edu.au", "asn.au", "id.au",
    "co.nz", "org.nz", "net.nz", "govt.nz",
    "co.za", "org.za",
    "co.in", "org.in", "gov.in",
    "co.jp", "or.jp", "ne.jp",
    "com.br", "org.br",
    "com.mx", "org.mx",
    "co.ie", "gov.ie",
    "gc.ca",
})


def _clean_labels(hostname: str) -> list[str]:
    """Split on dots, dropping empty labels from leading/trailing/duplicate dots."""
    return [label for label in hostname.strip().lower().split(".") if label]


def clean_domain(hostname: str) -> str:
    """Collapse stray dots and lowercase; an all-dots string becomes ''."""
    return ".".join(_clean_labels(hostname))


def _extract_scheme(value: str) -> Optional[str]:
    match = SCHEME_PATTERN.match(value)
    if match is None:
        return None
    scheme = match.group(1).lower()
    # 'localhost:8080' and 'example.org:443' look like schemes to a naive
    # parser; only treat it as a scheme when '//' follows or it is known.
    rest = value[match.end():]
    if rest.startswith("//") or scheme in NO_AUTHORITY_SCHEMES or scheme in WEB_SCHEMES:
        return scheme
    return None


def _encode_hostname(hostname: str) -> Optional[str]:
    """Lowercase and IDNA-encode a hostname; None if it cannot be encoded."""
    hostname = hostname.lower()
    if any(ord(c) > 127 for c in hostname):
        try:
            hostname = idna.encode(hostname, uts46=True).decode("ascii")
        except (idna.IDNAError, UnicodeError):
            return None
    return hostname


def normalize_hostname(url) -> Optional[str]:
    """
    Extract the lowercase hostname from a URL or bare host string.

    Port, userinfo, query and fragment are dropped; subdomains are kept.
    Percent-encoded and internationalized hostnames are decoded so that an
    obfuscated spelling normalizes to the same hostname as the plain one.
    """
    if not isinstance(url, str):
        return None

    value = url.strip()
    if not value:
        return None

    scheme = _extract_scheme(value)
    if scheme in NO_AUTHORITY_SCHEMES:
        return ""
    # Browsers treat '\' as a path separator in web URLs
    value = value.replace("\\", "/")
    if scheme is None:
        value = "http://" + value.lstrip("/")
    elif scheme in WEB_SCHEMES:
        value = f"{scheme}://" + value[len(scheme) + 1:].lstrip("/")

    try:
        parts = urlsplit(value)
        raw_host = parts.hostname
    except ValueError:
        # Invalid IPv6 literal, bad port, ...
        return None

    if not raw_host:
        return ""

    hostname = _encode_hostname(unquote(raw_host))
    if hostname is None:
        return None

    hostname = clean_domain(hostname)
    if not hostname:
        return ""

    if not HOSTNAME_PATTERN.match(hostname):
        return None

    return hostname


def base_domain(hostname: str) -> str:
    """
    Reduce a hostname to its registrable domain.

    Examples:
        chat.988lifeline.org   -> 988lifeline.org
        www.childline.org.uk   -> childline.org.uk
        ..rainn..org.          -> rainn.org
    """
    if not hostname:
        return ""

    labels = _clean_labels(hostname)
    if len(labels) <= 2:
        return ".".join(labels)

    if ".".join(labels[-2:]) in MULTI_LABEL_TLDS:
        return ".".join(labels[-3:])

    return ".".join(labels[-2:])
