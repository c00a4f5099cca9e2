"""Pydantic schemas for queries, candidates and adapter results.

These are the wire shapes shared by every adapter, the consolidator and the
dispatcher. Unknown optional fields stay ``None`` in Python and are omitted
from the serialized form, so "unknown" never collapses into "empty".
"""

from __future__ import annotations

from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, ValidationError, model_validator

from historic_detective.errors import InvalidInput
from historic_detective.models.enums import Modality, ResolutionStatus, ToolStatus


def _coerce_id(v: Any) -> str | None:
    """Record ids arrive as ints from CSV stores and as strings from indexes."""
    if v is None:
        return None
    if isinstance(v, float) and v.is_integer():
        v = int(v)
    return str(v)


class Query(BaseModel):
    """A resolution request.

    ``modality`` is kept as a plain string so that unrecognised values reach the
    dispatcher's invalid-modality state instead of failing here. For known
    modalities exactly the matching payload must be populated.
    """

    model_config = ConfigDict(frozen=True)

    modality: str
    text: str | None = None
    image_path: str | None = None
    lat: float | None = None
    lon: float | None = None

    @property
    def mode(self) -> Modality | None:
        """The recognised modality, or None for unknown values."""
        try:
            return Modality(self.modality)
        except ValueError:
            return None

    @model_validator(mode="after")
    def _check_payload(self) -> Query:
        mode = self.mode
        if mode is None:
            return self

        has_text = self.text is not None
        has_image = self.image_path is not None
        has_point = self.lat is not None or self.lon is not None

        if mode == Modality.TEXT:
            if not has_text or not self.text.strip():
                raise ValueError("text query requires non-empty 'text'")
            if has_image or has_point:
                raise ValueError("text query must not carry image_path or lat/lon")
        elif mode == Modality.IMAGE:
            if not has_image or not self.image_path.strip():
                raise ValueError("image query requires 'image_path'")
            if has_text or has_point:
                raise ValueError("image query must not carry text or lat/lon")
        else:
            if self.lat is None or self.lon is None:
                raise ValueError("location query requires both 'lat' and 'lon'")
            if has_text or has_image:
                raise ValueError("location query must not carry text or image_path")
            if not -90.0 <= self.lat <= 90.0:
                raise ValueError(f"latitude out of range: {self.lat}")
            if not -180.0 <= self.lon <= 180.0:
                raise ValueError(f"longitude out of range: {self.lon}")
        return self

    @classmethod
    def parse(cls, data: dict[str, Any]) -> Query:
        """Validate a raw request mapping, raising InvalidInput on mismatch."""
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise InvalidInput(_first_error(e)) from e

    @classmethod
    def for_text(cls, text: str) -> Query:
        return cls.parse({"modality": Modality.TEXT.value, "text": text})

    @classmethod
    def for_image(cls, image_path: str) -> Query:
        return cls.parse({"modality": Modality.IMAGE.value, "image_path": image_path})

    @classmethod
    def for_location(cls, lat: float, lon: float) -> Query:
        return cls.parse({"modality": Modality.LOCATION.value, "lat": lat, "lon": lon})


def _first_error(e: ValidationError) -> str:
    err = e.errors()[0]
    msg = str(err.get("msg", "invalid request"))
    # pydantic prefixes messages raised from validators
    return msg.removeprefix("Value error, ")


class Candidate(BaseModel):
    """One proposed identification of the queried building.

    Immutable once returned by an adapter; consolidation only selects.
    """

    model_config = ConfigDict(frozen=True)

    id: Annotated[str | None, BeforeValidator(_coerce_id)] = None
    title: str | None = None
    address: str | None = None
    lat: float | None = None
    lon: float | None = None
    year: int | None = None
    url: str | None = None
    source: str
    score: float | None = Field(default=None, ge=0.0, le=1.0)

    def to_wire(self) -> dict[str, Any]:
        """Serialized form with unknown fields omitted (never null)."""
        return self.model_dump(exclude_none=True)


class ToolResult(BaseModel):
    """Uniform response of every adapter.

    ``candidates`` keeps the adapter's own relevance order.
    """

    model_config = ConfigDict(frozen=True)

    status: ToolStatus
    candidates: tuple[Candidate, ...] = ()
    meta: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def ok(cls, candidates: list[Candidate] | tuple[Candidate, ...], **meta: Any) -> ToolResult:
        """Successful result. No candidates normalises to EMPTY."""
        status = ToolStatus.OK if candidates else ToolStatus.EMPTY
        return cls(status=status, candidates=tuple(candidates), meta=meta)

    @classmethod
    def empty(cls, **meta: Any) -> ToolResult:
        return cls(status=ToolStatus.EMPTY, meta=meta)

    @classmethod
    def error(cls, **meta: Any) -> ToolResult:
        return cls(status=ToolStatus.ERROR, meta=meta)

    @property
    def usable(self) -> bool:
        """True when this result can contribute a winner."""
        return self.status == ToolStatus.OK and len(self.candidates) > 0

    @property
    def top(self) -> Candidate | None:
        return self.candidates[0] if self.candidates else None

    def diagnostics(self) -> dict[str, Any]:
        """Compact summary used in resolution metadata."""
        return {
            "status": self.status.value,
            "n": len(self.candidates),
            "meta": self.meta,
        }

    def to_wire(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "candidates": [c.to_wire() for c in self.candidates],
            "meta": self.meta,
        }


class Resolution(BaseModel):
    """Terminal outcome of one resolution request."""

    status: ResolutionStatus
    candidate: Candidate | None = None
    report: str | None = None
    meta: dict[str, Any] = Field(default_factory=dict)

    def to_wire(self) -> dict[str, Any]:
        data: dict[str, Any] = {"status": self.status.value, "meta": self.meta}
        if self.candidate is not None:
            data["candidate"] = self.candidate.to_wire()
        if self.report is not None:
            data["report"] = self.report
        return data
