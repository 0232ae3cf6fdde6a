"""
Text extraction helpers for inbound email.

Pure functions only: subject normalisation, PO number extraction, sender
domain and proof link extraction.
"""

import re

# Ordered: the first pattern that matches wins. Confidence values in the
# match engine assume this order, so do not reorder.
PO_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"PO\s*#?\s*([A-Z0-9\-.]+)", re.IGNORECASE),  # PO44517, PO 44430, PO#44517
    re.compile(r"(?:Purchase Order|P\.O\.)\s*#?\s*([A-Z0-9\-.]+)", re.IGNORECASE),
    re.compile(r"TEL-\d{4}-\d{3}(?:-\d+)?", re.IGNORECASE),  # TEL-2025-001-2
    re.compile(r"Job\s*#?\s*(J-\d+)", re.IGNORECASE),  # Job # J-2069
)

PROOF_LINK_HOSTS = ("dropbox.com", "we.tl", "drive.google.com")

PROOF_LINK_PATTERN = re.compile(
    r"https?://(?:www\.)?(?:" + "|".join(re.escape(host) for host in PROOF_LINK_HOSTS) + r")[^\s\"<>]+",
    re.IGNORECASE,
)

EMAIL_DOMAIN_PATTERN = re.compile(r"@([a-z0-9.\-]+)", re.IGNORECASE)

_REPLY_PREFIX = re.compile(r"^(?:(?:re|fwd|fw)\s*:\s*)+", re.IGNORECASE)
_INTERNAL_TAG = re.compile(r"\[IDP-[^\]]+\]", re.IGNORECASE)
_WHITESPACE = re.compile(r"\s+")


def normalize_subject(subject: str) -> str:
    """
    Normalize a subject line for matching.

    "Re: FW: [IDP-12]  Proof for PO 44517" -> "proof for po 44517"
    """
    text = subject or ""
    # Stripping one tag or prefix can expose another; repeat until stable
    while True:
        stripped = _WHITESPACE.sub(" ", _INTERNAL_TAG.sub("", text)).strip()
        stripped = _REPLY_PREFIX.sub("", stripped).strip()
        if stripped == text:
            break
        text = stripped
    return _WHITESPACE.sub(" ", text).strip().lower()


def extract_po_number(text: str | None) -> str | None:
    """Return the first PO-like token found in text, upper-cased."""
    if not text:
        return None

    for pattern in PO_PATTERNS:
        match = pattern.search(text)
        if not match:
            continue
        token = match.group(1) if match.groups() else match.group(0)
        if token:
            return token.upper()
    return None


def extract_domain(email: str | None) -> str | None:
    """Return the lower-cased domain of an email address."""
    if not email:
        return None
    match = EMAIL_DOMAIN_PATTERN.search(email)
    return match.group(1).lower() if match else None


def extract_links(text: str | None) -> list[str]:
    """Return every trusted proof link in text, in order, duplicates kept."""
    if not text:
        return []
    return PROOF_LINK_PATTERN.findall(text)
