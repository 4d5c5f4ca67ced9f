"""Evidence retrieval: sources, the cached Retrieval Adapter and domain allowlist checks."""

from workforce_lu.retrieval.adapter import RetrievalAdapter, get_default_adapter
from workforce_lu.retrieval.allowlist import (
    find_disallowed_evidence,
    is_allowed_url,
    validate_evidence_domains,
    validate_guichet_evidence,
    validate_legal_evidence,
)
from workforce_lu.retrieval.sources import (
    EvidenceSource,
    SourceConfigurationError,
    StubGuichetSource,
    StubLegalSource,
    default_sources,
)

__all__ = [
    "RetrievalAdapter",
    "get_default_adapter",
    "EvidenceSource",
    "SourceConfigurationError",
    "StubGuichetSource",
    "StubLegalSource",
    "default_sources",
    "is_allowed_url",
    "validate_evidence_domains",
    "find_disallowed_evidence",
    "validate_guichet_evidence",
    "validate_legal_evidence",
]
