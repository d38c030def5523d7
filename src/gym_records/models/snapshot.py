"""Dataset snapshot models (the JSON interchange format)."""

from typing import Any, Self

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

RECORD_CATEGORIES = ("members", "payments", "activities")


class _CamelModel(BaseModel):
    """Base model serialized with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PricingSettings(_CamelModel):
    """Pricing configuration. Unknown keys are preserved."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="allow"
    )

    subscription_price: float = 1500.0
    currency: str = "DZD"


class UserSettings(_CamelModel):
    """User configuration. Unknown keys are preserved."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="allow"
    )

    username: str | None = None


class SettingsBag(_CamelModel):
    """Settings section of a snapshot.

    ``pricing`` and ``user`` are None when settings were not exported. A None
    bag is written as an empty object and an empty object reads back as None,
    so the payload round-trips. A bag with no values set is treated as absent.
    ``password`` is only set when the export opted into sensitive data; a
    missing password is omitted from the payload, never written as null.
    """

    pricing: PricingSettings | None = None
    user: UserSettings | None = None
    password: str | None = None

    @field_validator("pricing", "user", mode="before")
    @classmethod
    def empty_object_is_absent(cls, value: Any) -> Any:
        if isinstance(value, dict) and not value:
            return None
        return value

    @model_validator(mode="after")
    def drop_unset_bags(self) -> Self:
        if self.pricing is not None and not self.pricing.model_dump(exclude_none=True):
            self.pricing = None
        if self.user is not None and not self.user.model_dump(exclude_none=True):
            self.user = None
        return self


class SnapshotData(_CamelModel):
    """Record collections and settings."""

    members: list[dict[str, Any]] = Field(default_factory=list)
    payments: list[dict[str, Any]] = Field(default_factory=list)
    activities: list[dict[str, Any]] = Field(default_factory=list)
    settings: SettingsBag = Field(default_factory=SettingsBag)


class SnapshotMetadata(_CamelModel):
    """Per-category counts plus export provenance."""

    total_members: int = 0
    total_payments: int = 0
    total_activities: int = 0
    exported_by: str
    gym_name: str


class DatasetSnapshot(_CamelModel):
    """The unit of interchange: the whole dataset at one instant."""

    version: str
    timestamp: str
    metadata: SnapshotMetadata
    data: SnapshotData = Field(default_factory=SnapshotData)

    @property
    def counts(self) -> dict[str, int]:
        """Record counts per category."""
        return {category: len(getattr(self.data, category)) for category in RECORD_CATEGORIES}

    def to_payload(self) -> dict[str, Any]:
        """Convert to the JSON-ready interchange dictionary."""
        payload = self.model_dump(mode="json", by_alias=True)
        settings = payload["data"]["settings"]

        if settings.get("password") is None:
            settings.pop("password", None)
        for bag in ("pricing", "user"):
            if settings[bag] is None:
                settings[bag] = {}

        return payload

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "DatasetSnapshot":
        """Build a snapshot from a decoded interchange dictionary."""
        return cls.model_validate(payload)
