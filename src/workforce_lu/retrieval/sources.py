"""Evidence sources the Retrieval Adapter fetches from.

A source knows one domain (guichet or legal) and turns a query into raw
`RetrievalResult`s. Real web retrieval is not part of this package; the stub
sources below serve a small fixed catalog of domain-correct pages so the
pipeline runs end to end in development, demos and tests.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from workforce_lu.config import settings
from workforce_lu.types.evidence import RetrievalResult, SourceTag
from workforce_lu.utils.logging import setup_logger

logger = setup_logger(__name__)


@runtime_checkable
class EvidenceSource(Protocol):
    """Fetches raw results for one domain."""

    tag: SourceTag

    async def fetch(self, query: str, language: str) -> list[RetrievalResult]:
        """Return results for `query`. May raise on backend failure."""
        ...


# (keywords, result). The first entry doubles as the default result.
_GUICHET_CATALOG: tuple[tuple[tuple[str, ...], RetrievalResult], ...] = (
    (
        ("contract", "contrat", "vertrag", "hire", "hiring", "employ"),
        RetrievalResult(
            url="https://guichet.public.lu/en/citoyens/emploi-travail/contrat-travail",
            title="Employment Contract",
            section="Rights and Obligations",
            snippet=(
                "An employment contract must be in writing and contain the essential "
                "terms of employment including salary, working hours, and duration."
            ),
        ),
    ),
    (
        ("sick", "illness", "maladie", "krank", "incapacity"),
        RetrievalResult(
            url="https://guichet.public.lu/en/citoyens/sante-social/maladie/incapacite-travail",
            title="Incapacity for work due to illness",
            section="Notifying the employer",
            snippet=(
                "The employee must inform the employer on the first day of absence and "
                "send a medical certificate no later than the third day of absence."
            ),
        ),
    ),
    (
        ("parental", "leave", "congé", "urlaub", "holiday"),
        RetrievalResult(
            url="https://guichet.public.lu/en/citoyens/famille/parents/conge-parental",
            title="Parental leave",
            section="Application",
            snippet=(
                "The application for parental leave must be sent to the Future of "
                "Children Fund (Zukunftskeess) together with the employer's signed form."
            ),
        ),
    ),
    (
        ("salary", "wage", "salaire", "lohn", "minimum"),
        RetrievalResult(
            url="https://guichet.public.lu/en/entreprises/ressources-humaines/remuneration/salaire-social-minimum",
            title="Social minimum wage",
            section="Amounts",
            snippet=(
                "Employers are required to pay at least the social minimum wage, which "
                "is indexed and adjusted periodically."
            ),
        ),
    ),
)

_LEGAL_CATALOG: tuple[tuple[tuple[str, ...], RetrievalResult], ...] = (
    (
        ("contract", "contrat", "vertrag", "written", "employ"),
        RetrievalResult(
            url="https://legilux.public.lu/eli/etat/leg/loi/2018/05/08/a710",
            title="Labour Code - Article 1",
            section="General Provisions",
            snippet=(
                "Every worker has the right to a written employment contract specifying "
                "the terms and conditions of employment."
            ),
        ),
    ),
    (
        ("dismissal", "notice", "licenciement", "kündigung", "terminate", "termination"),
        RetrievalResult(
            url="https://legilux.public.lu/eli/etat/leg/code/travail/article/L124-3",
            title="Labour Code - Article L.124-3",
            section="Notice periods",
            snippet=(
                "The notice period depends on the employee's seniority and is mandatory "
                "for dismissals by the employer, except for serious misconduct."
            ),
        ),
    ),
    (
        ("hours", "overtime", "working time", "heures", "arbeitszeit"),
        RetrievalResult(
            url="https://mt.gouvernement.lu/fr/emploi/droit-du-travail/duree-travail.html",
            title="Working time",
            section="Maximum working hours",
            snippet=(
                "Normal working time may not exceed 8 hours per day and 40 hours per week; "
                "overtime is permitted only in the cases provided by law."
            ),
        ),
    ),
)


def _match_catalog(
    catalog: tuple[tuple[tuple[str, ...], RetrievalResult], ...],
    query: str,
    limit: int,
) -> list[RetrievalResult]:
    text = query.lower()
    matches = [result for keywords, result in catalog if any(k in text for k in keywords)]
    if not matches:
        matches = [catalog[0][1]]
    return matches[:limit]


class StubGuichetSource:
    """Fixed guichet.public.lu results chosen by keyword."""

    tag = SourceTag.GUICHET

    def __init__(self, max_results: int | None = None):
        self.max_results = max_results or settings.max_results_per_query

    async def fetch(self, query: str, language: str) -> list[RetrievalResult]:
        results = _match_catalog(_GUICHET_CATALOG, query, self.max_results)
        logger.debug(
            "Stub guichet fetch",
            extra={"query": query, "language": language, "num_results": len(results)},
        )
        return results


class StubLegalSource:
    """Fixed legilux.public.lu / mt.gouvernement.lu results chosen by keyword."""

    tag = SourceTag.LEGAL

    def __init__(self, max_results: int | None = None):
        self.max_results = max_results or settings.max_results_per_query

    async def fetch(self, query: str, language: str) -> list[RetrievalResult]:
        results = _match_catalog(_LEGAL_CATALOG, query, self.max_results)
        logger.debug(
            "Stub legal fetch",
            extra={"query": query, "language": language, "num_results": len(results)},
        )
        return results


class SourceConfigurationError(Exception):
    """Raised when no evidence source can be built from the settings."""

    pass


def default_sources() -> dict[SourceTag, EvidenceSource]:
    """Sources used when none are injected.

    Raises:
        SourceConfigurationError: If stub sources are disabled, since no live
            backend ships with this package and one must be injected instead.
    """
    if not settings.use_stub_sources:
        logger.error(
            "Stub sources disabled and no evidence source injected",
            extra={"use_stub_sources": False},
        )
        raise SourceConfigurationError(
            "USE_STUB_SOURCES is false but no live retrieval backend is available; "
            "pass sources to RetrievalAdapter explicitly"
        )
    return {
        SourceTag.GUICHET: StubGuichetSource(),
        SourceTag.LEGAL: StubLegalSource(),
    }
