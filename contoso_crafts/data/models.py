"""Pydantic models for catalog records."""

from __future__ import annotations

import re
import uuid
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator, model_validator


class UniversityType(int, Enum):
    """Kind of institution. Stored in JSON by name, not by value."""

    UNDEFINED = 0
    PUBLIC = 1
    PRIVATE = 5
    ONLINE = 10
    COMMUNITY = 18
    OTHER = 24

    @property
    def label(self) -> str:
        """Serialized name, e.g. ``"Public"``."""
        return self.name.capitalize()

    @property
    def flag_class(self) -> str:
        """CSS flag token shown next to a listing."""
        return f"flag-{self.name.lower()}"

    @classmethod
    def from_name(cls, name: str | None) -> UniversityType | None:
        """Case-insensitive lookup by name; None when nothing matches."""
        if name is None:
            return None
        return cls.__members__.get(name.strip().upper())


_INT_STRING = re.compile(r"^\s*[+-]?\d+\s*$")
_DEFINED_VALUES = {member.value for member in UniversityType}


def parse_university_type(raw: Any) -> UniversityType:
    """Coerce a JSON token into a :class:`UniversityType`.

    Order of attempts for strings: blank -> UNDEFINED; integer text ->
    the member with that value, else UNDEFINED; otherwise the member
    with that name (case-insensitive). JSON integers map by value.
    Anything else (booleans, decimals, null, containers, unknown
    names, undefined values) degrades to UNDEFINED.
    """
    if isinstance(raw, UniversityType):
        return raw

    if isinstance(raw, str):
        if not raw.strip():
            return UniversityType.UNDEFINED
        if _INT_STRING.match(raw):
            value = int(raw)
            if value in _DEFINED_VALUES:
                return UniversityType(value)
            return UniversityType.UNDEFINED
        return UniversityType.from_name(raw) or UniversityType.UNDEFINED

    # bool is an int subclass but a JSON true/false is not a number
    if isinstance(raw, int) and not isinstance(raw, bool):
        if raw in _DEFINED_VALUES:
            return UniversityType(raw)
        return UniversityType.UNDEFINED

    return UniversityType.UNDEFINED


def _new_id() -> str:
    return str(uuid.uuid4())


class Product(BaseModel):
    """A university listing.

    Attribute names are snake_case; the JSON file uses the camelCase
    aliases below (``image`` is stored as ``img``). Reading matches
    aliases case-insensitively so older files with ``Title`` or
    ``undergraduateDegree`` keys still load.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: Optional[str] = Field(default_factory=_new_id, alias="id")
    maker: Optional[str] = Field(default="", alias="maker")
    image: Optional[str] = Field(default="", alias="img")
    url: Optional[str] = Field(default="", alias="url")
    title: Optional[str] = Field(default="", alias="title")
    description: Optional[str] = Field(default="", alias="description")
    ratings: Optional[list[int]] = Field(default_factory=list, alias="ratings")
    location: Optional[str] = Field(default="", alias="location")
    graduate_degree: Optional[list[Optional[str]]] = Field(
        default_factory=list, alias="graduateDegree"
    )
    under_graduate_degree: Optional[list[Optional[str]]] = Field(
        default_factory=list, alias="underGraduateDegree"
    )
    type_of_university: UniversityType = Field(
        default=UniversityType.UNDEFINED, alias="typeOfUniversity"
    )
    number_of_departments: int = Field(default=1, alias="numberOfDepartments")
    has_online_programs: bool = Field(default=False, alias="hasOnlinePrograms")
    campuses: Optional[list[Optional[str]]] = Field(
        default_factory=list, alias="campuses"
    )

    @model_validator(mode="before")
    @classmethod
    def _match_keys_case_insensitively(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        aliases = {
            (field.alias or name).lower(): field.alias or name
            for name, field in cls.model_fields.items()
        }
        return {aliases.get(str(key).lower(), key): value for key, value in data.items()}

    @field_validator("type_of_university", mode="before")
    @classmethod
    def _coerce_type(cls, value: Any) -> UniversityType:
        return parse_university_type(value)

    @field_serializer("type_of_university")
    def _serialize_type(self, value: UniversityType) -> str:
        return value.label

    @property
    def average_rating(self) -> float | None:
        """Mean of the ratings, or None when there are none."""
        if not self.ratings:
            return None
        return sum(self.ratings) / len(self.ratings)

    def to_json_dict(self) -> dict[str, Any]:
        """Return the record keyed by its on-disk names."""
        return self.model_dump(by_alias=True, mode="json")


# Fields copied by ProductStore.update; id, maker and ratings stay as stored.
UPDATABLE_FIELDS: tuple[str, ...] = (
    "title",
    "description",
    "url",
    "image",
    "location",
    "graduate_degree",
    "under_graduate_degree",
    "type_of_university",
    "number_of_departments",
    "has_online_programs",
    "campuses",
)
