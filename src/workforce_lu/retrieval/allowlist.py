"""Domain allowlist checks for retrieved evidence."""

from __future__ import annotations

from collections.abc import Sequence
from urllib.parse import urlparse

from workforce_lu.consts import DOMAIN_ALLOWLIST
from workforce_lu.types.evidence import Evidence, SourceTag


def allowed_domains(tag: SourceTag | str) -> tuple[str, ...]:
    """Hostnames allowed for a source tag. `mixed` accepts every domain."""
    if SourceTag(tag) == SourceTag.MIXED:
        return tuple(d for domains in DOMAIN_ALLOWLIST.values() for d in domains)
    return DOMAIN_ALLOWLIST[str(tag)]


def is_allowed_url(url: str, tag: SourceTag | str) -> bool:
    """True if the URL's host is an allowed domain for `tag`, or a subdomain of one."""
    host = (urlparse(url).hostname or "").lower()
    if not host:
        return False
    return any(host == d or host.endswith(f".{d}") for d in allowed_domains(tag))


def find_disallowed_evidence(evidence: Sequence[Evidence]) -> list[Evidence]:
    return [e for e in evidence if not is_allowed_url(e.url, e.source)]


def validate_evidence_domains(evidence: Sequence[Evidence]) -> bool:
    """True if every item comes from a domain allowed for its own source tag."""
    return not find_disallowed_evidence(evidence)


def validate_guichet_evidence(evidence: Sequence[Evidence]) -> bool:
    return all(is_allowed_url(e.url, SourceTag.GUICHET) for e in evidence)


def validate_legal_evidence(evidence: Sequence[Evidence]) -> bool:
    return all(is_allowed_url(e.url, SourceTag.LEGAL) for e in evidence)
