"""openFDA drug label (``/drug/label.json``) response models.

Every field is optional: the label schema is sparsely populated and most
sections appear only on some products.
"""

from pydantic import BaseModel, ConfigDict


class OpenFDAFields(BaseModel):
    """Harmonised ``openfda`` sub-object attached to a label."""

    model_config = ConfigDict(extra="ignore")

    brand_name: list[str] | None = None
    generic_name: list[str] | None = None
    substance_name: list[str] | None = None
    manufacturer_name: list[str] | None = None
    product_type: list[str] | None = None
    route: list[str] | None = None
    rxcui: list[str] | None = None


class LabelResult(BaseModel):
    """Single label record."""

    model_config = ConfigDict(extra="ignore")

    openfda: OpenFDAFields | None = None
    indications_and_usage: list[str] | None = None
    purpose: list[str] | None = None
    dosage_and_administration: list[str] | None = None
    warnings: list[str] | None = None
    description: list[str] | None = None
    adverse_reactions: list[str] | None = None

    @property
    def brand_names(self) -> list[str]:
        """Brand names with surrounding whitespace removed; blank entries dropped."""
        names = self.openfda.brand_name if self.openfda else None
        return [n.strip() for n in names or [] if n.strip()]

    @property
    def generic_names(self) -> list[str]:
        return list(self.openfda.generic_name or []) if self.openfda else []


class LabelMeta(BaseModel):
    model_config = ConfigDict(extra="ignore")

    disclaimer: str | None = None
    terms: str | None = None
    license: str | None = None
    last_updated: str | None = None


class LabelResponse(BaseModel):
    """Successful response body from the label endpoint."""

    model_config = ConfigDict(extra="ignore")

    meta: LabelMeta | None = None
    results: list[LabelResult] | None = None


class APIError(BaseModel):
    code: str = ""
    message: str = ""


class ErrorEnvelope(BaseModel):
    """Error body returned in place of ``LabelResponse``."""

    error: APIError
