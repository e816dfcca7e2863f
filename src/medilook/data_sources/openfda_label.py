"""
openFDA Drug Label client.

Resolves a medicine name into Medicine records, trying in order:
  1. alias expansion: known synonyms replace the raw query as search terms
  2. primary search: brand OR generic name, one request per term
  3. alternative search: one broader request against the raw query
  4. fallback record: placeholder Medicine named after the query

The first step that yields a record wins. Transport and decode failures
only mean "nothing from this step"; `search` never raises.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import aiohttp
from pydantic import ValidationError

from medilook.config import get_settings
from medilook.constants import (
    ALTERNATIVE_SEARCH_LIMIT,
    CONSULT_PROVIDER,
    CONSULT_PROVIDER_SHORT,
    CONSULT_PROVIDER_WARNING,
    DRUG_ALIASES,
    FALLBACK_DESCRIPTION,
    NO_DESCRIPTION,
    OPENFDA_LABEL_PATH,
    OPENFDA_MAX_LIMIT,
    PRIMARY_SEARCH_LIMIT,
    TAKE_AS_DIRECTED,
)
from medilook.data_sources.base_client import (
    BaseClient,
    CacheConfig,
    ClientConfig,
    DataSourceError,
    RequestContext,
    RetryConfig,
)
from medilook.models.medicine import Medicine
from medilook.models.model_openfda import ErrorEnvelope, LabelResponse, LabelResult
from medilook.services.label_fields import extract_dosage, extract_side_effects

logger = logging.getLogger("medilook.data_sources.openfda_label")


def search_terms_for(query: str) -> list[str]:
    """Return the terms to try for a query: its aliases, or the query itself."""
    return list(DRUG_ALIASES.get(query.lower(), [query]))


def _first(values: list[str] | None) -> str | None:
    return values[0] if values else None


def _first_clause(values: list[str] | None) -> str | None:
    """Text before the first period of the first entry, if non-empty."""
    text = _first(values)
    if text is None:
        return None
    clause = text.split(".")[0].strip()
    return clause or None


def _matching_brand_name(brand_names: list[str], query: str) -> str:
    """Exact (case-insensitive) match, then prefix match, then the first name."""
    lowered = query.strip().lower()
    for name in brand_names:
        if name.lower() == lowered:
            return name
    for name in brand_names:
        if name.lower().startswith(lowered):
            return name
    return brand_names[0]


def _error_envelope(body: Any) -> ErrorEnvelope | None:
    """Decode an openFDA error body (raw text or parsed JSON), if it is one."""
    if not body:
        return None
    try:
        if isinstance(body, (str, bytes)):
            return ErrorEnvelope.model_validate_json(body)
        return ErrorEnvelope.model_validate(body)
    except ValidationError:
        return None


def _requires_prescription(result: LabelResult) -> bool:
    """True unless the product type is reported and only lists non-prescription types."""
    product_types = result.openfda.product_type if result.openfda else None
    if not product_types:
        return True
    upper = [p.upper() for p in product_types]
    if any("PRESCRIPTION" in p for p in upper):
        return True
    return not any("OTC" in p for p in upper)


class DrugLookupClient(BaseClient):
    """Client for resolving medicine names against the openFDA drug label API."""

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        config: ClientConfig | None = None,
    ) -> None:
        settings = get_settings()
        if config is None:
            config = ClientConfig(
                retry=RetryConfig(max_retries=settings.max_retries),
                cache=CacheConfig(
                    enabled=settings.label_cache_enabled,
                    directory=settings.label_cache_dir,
                ),
                timeout_seconds=settings.request_timeout_seconds,
            )
        super().__init__(config)
        self._api_key = api_key if api_key is not None else settings.openfda_api_key
        self._base_url = (base_url or settings.openfda_base_url).rstrip("/")

    @property
    def _source_name(self) -> str:
        return "openfda_label"

    @property
    def label_url(self) -> str:
        return f"{self._base_url}{OPENFDA_LABEL_PATH}"

    # -- Public methods -------------------------------------------------------

    async def search(self, query: str) -> list[Medicine]:
        """Resolve a medicine name into one or more Medicine records.

        Always returns at least the fallback record for a non-blank query,
        named after ``query`` exactly as given. A blank query returns an
        empty list without touching the network.
        """
        stripped = query.strip()
        if not stripped:
            return []

        for term in search_terms_for(stripped):
            medicines = await self._primary_search(term, query)
            if medicines:
                return medicines

        medicine = await self._alternative_search(stripped)
        if medicine is not None:
            return [medicine]

        logger.info("No label found for %r, returning fallback record", query)
        return [self.fallback_medicine(query)]

    @staticmethod
    def fallback_medicine(query: str) -> Medicine:
        """Information-free record used when every lookup strategy fails."""
        return Medicine(
            name=query,
            description=FALLBACK_DESCRIPTION,
            alternatives=[],
            dosage=CONSULT_PROVIDER,
            warnings=[CONSULT_PROVIDER_WARNING],
            requires_prescription=True,
            side_effects=[CONSULT_PROVIDER_SHORT],
            usage_instructions=CONSULT_PROVIDER_SHORT,
        )

    # -- Strategies -----------------------------------------------------------

    async def _primary_search(self, term: str, query: str) -> list[Medicine]:
        """One brand-or-generic lookup; records de-duplicated by matching brand name."""
        expression = (
            f'(openfda.brand_name:"{term}" OR openfda.generic_name:"{term}")'
        )
        results = await self._fetch_labels(
            expression, PRIMARY_SEARCH_LIMIT, method="primary_search"
        )

        medicines: dict[str, Medicine] = {}
        for result in results:
            brand_names = result.brand_names
            if not brand_names:
                continue
            name = _matching_brand_name(brand_names, query)
            key = name.lower()
            if key in medicines:
                continue
            medicines[key] = self._build_medicine(
                result,
                name,
                usage_instructions=_first(result.dosage_and_administration)
                or TAKE_AS_DIRECTED,
            )

        if medicines:
            logger.info(
                "Primary search for %r (term %r) found %d medicine(s)",
                query,
                term,
                len(medicines),
            )
        return list(medicines.values())

    async def _alternative_search(self, query: str) -> Medicine | None:
        """Broader lookup against the raw query, keeping the best single record."""
        expression = f'openfda.generic_name:"{query}" OR openfda.brand_name:"{query}"'
        results = await self._fetch_labels(
            expression, ALTERNATIVE_SEARCH_LIMIT, method="alternative_search"
        )
        if not results:
            return None

        lowered = query.lower()
        chosen = next(
            (
                r
                for r in results
                if any(lowered in n.lower() for n in r.brand_names + r.generic_names)
            ),
            results[0],
        )
        name = _first(chosen.brand_names)
        if not name:
            return None
        return self._build_medicine(chosen, name, usage_instructions=TAKE_AS_DIRECTED)

    # -- Private helpers ------------------------------------------------------

    def _build_params(self, expression: str, limit: int) -> dict[str, str]:
        """Build query parameters for the label endpoint."""
        params: dict[str, str] = {
            "search": expression,
            "limit": str(min(limit, OPENFDA_MAX_LIMIT)),
        }
        if self._api_key:
            params["api_key"] = self._api_key
        return params

    async def _fetch_labels(
        self, expression: str, limit: int, *, method: str
    ) -> list[LabelResult]:
        """Run one label query; any failure yields an empty list."""
        params = self._build_params(expression, limit)
        context = RequestContext(
            source=self._source_name, method=method, params={"search": expression}
        )
        try:
            response = await self._rest_get(
                self.label_url,
                params,
                cache_namespace="openfda_label",
                context=context,
            )
        except DataSourceError as e:
            envelope = _error_envelope(e.body)
            if envelope is not None:
                self._log_api_error(envelope, expression)
            else:
                logger.warning("Label request failed for %s: %s", expression, e)
            return []
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            logger.warning("Label request failed for %s: %s", expression, e)
            return []

        if not response.is_complete or response.data is None:
            return []
        return self._parse_label_response(response.data, expression)

    @staticmethod
    def _log_api_error(envelope: ErrorEnvelope, expression: str) -> None:
        logger.warning(
            "API error for %s: %s %s",
            expression,
            envelope.error.code,
            envelope.error.message,
        )

    @classmethod
    def _parse_label_response(cls, data: Any, expression: str) -> list[LabelResult]:
        """Decode a response body, distinguishing error envelopes from results."""
        envelope = _error_envelope(data)
        if envelope is not None:
            cls._log_api_error(envelope, expression)
            return []
        try:
            decoded = LabelResponse.model_validate(data)
        except ValidationError as e:
            logger.warning("Could not decode label response for %s: %s", expression, e)
            return []
        return decoded.results or []

    @staticmethod
    def _build_medicine(
        result: LabelResult, name: str, *, usage_instructions: str
    ) -> Medicine:
        """Normalise one label record into a Medicine named ``name``."""
        alternatives = result.generic_names + [
            n for n in result.brand_names if n != name
        ]
        description = (
            _first_clause(result.indications_and_usage)
            or _first_clause(result.purpose)
            or _first_clause(result.description)
            or NO_DESCRIPTION
        )
        rxcui = _first(result.openfda.rxcui if result.openfda else None) or ""

        return Medicine(
            name=name,
            description=description,
            alternatives=alternatives,
            rxcui=rxcui,
            dosage=extract_dosage(_first(result.dosage_and_administration)),
            warnings=result.warnings or [CONSULT_PROVIDER_WARNING],
            requires_prescription=_requires_prescription(result),
            side_effects=extract_side_effects(_first(result.adverse_reactions)),
            usage_instructions=usage_instructions,
        )
