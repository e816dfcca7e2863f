"""Resolved medicine record."""

from uuid import UUID, uuid4

from pydantic import BaseModel, Field, field_validator, model_validator

from medilook.constants import (
    CONSULT_PROVIDER,
    CONSULT_PROVIDER_SIDE_EFFECTS,
    CONSULT_PROVIDER_WARNING,
    NO_DESCRIPTION,
    TAKE_AS_DIRECTED,
)


class Medicine(BaseModel):
    """A drug resolved from a label record, or the fallback for an unknown query.

    Equality compares every field including ``id``, so two lookups of the same
    drug produce unequal records. Use ``natural_key`` to match them by content.
    """

    id: UUID = Field(default_factory=uuid4)
    name: str
    description: str = NO_DESCRIPTION
    alternatives: list[str] = []
    rxcui: str = ""
    dosage: str = CONSULT_PROVIDER
    warnings: list[str] = [CONSULT_PROVIDER_WARNING]
    requires_prescription: bool = True
    side_effects: list[str] = [CONSULT_PROVIDER_SIDE_EFFECTS]
    usage_instructions: str = TAKE_AS_DIRECTED

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("name must not be empty")
        return v

    @field_validator("warnings")
    @classmethod
    def default_warnings(cls, v: list[str]) -> list[str]:
        return v or [CONSULT_PROVIDER_WARNING]

    @field_validator("side_effects")
    @classmethod
    def default_side_effects(cls, v: list[str]) -> list[str]:
        return v or [CONSULT_PROVIDER_SIDE_EFFECTS]

    @model_validator(mode="after")
    def dedupe_alternatives(self) -> "Medicine":
        """Strip, drop empties, and drop duplicates (including the name itself)."""
        seen = {self.name.lower()}
        cleaned: list[str] = []
        for alt in self.alternatives:
            alt = alt.strip()
            if not alt or alt.lower() in seen:
                continue
            seen.add(alt.lower())
            cleaned.append(alt)
        self.alternatives = cleaned
        return self

    @property
    def natural_key(self) -> tuple[str, str]:
        """Content identity: lower-cased name plus rxcui."""
        return self.name.lower(), self.rxcui
