"""Fixed domain data shared across the pipeline."""

# Hostnames each source tag may cite. Subdomains of an entry are accepted too.
DOMAIN_ALLOWLIST: dict[str, tuple[str, ...]] = {
    "guichet": ("guichet.public.lu", "guichet.lu"),
    "legal": ("legilux.public.lu", "mt.gouvernement.lu"),
}

# Opposite-meaning keyword pairs scanned in legal evidence snippets
CONFLICT_KEYWORD_PAIRS: tuple[tuple[str, str], ...] = (
    ("must", "must not"),
    ("required", "optional"),
    ("mandatory", "voluntary"),
)

LEGAL_DISCLAIMER = "This is not legal advice. Consult a qualified lawyer for legal decisions."

GUICHET_DEFAULT_LIMITATIONS = (
    "This information is from guichet.public.lu and current as of retrieval date.",
    "Individual circumstances may affect eligibility.",
)

NO_INFORMATION_ANSWER = "Unable to find relevant information to answer your question."
NO_INFORMATION_LIMITATIONS = (
    "No evidence found in available sources.",
    "Please rephrase your question or contact support.",
)

ERROR_ANSWER = (
    "I was unable to process your question. Please try rephrasing or contact support."
)
ERROR_LIMITATIONS = (
    "An error occurred while processing your question.",
    "Please try again or contact support.",
)

PLANNER_FALLBACK_REASONING = "Fallback plan due to processing error"

# Disclaimers shown next to an answer, by the intent that produced it
DISCLAIMERS: dict[str, str] = {
    "mixed": (
        "This is general information based on public sources such as Guichet.lu. "
        "It is not legal or professional advice. For decisions with legal impact, "
        "consult a qualified lawyer or HR specialist."
    ),
    "legal": (
        "This is general information and not legal advice. Laws and regulations can "
        "change. Translations or summaries may simplify legal language. You remain "
        "responsible for verifying crucial information. For legal decisions, consult "
        "a qualified lawyer."
    ),
    "procedural": (
        "This information is based on official sources. Procedures and requirements "
        "may change. Always verify with the official sources linked below before "
        "taking action."
    ),
}
