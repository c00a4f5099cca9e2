"""Enumerations for the Historic Detective data model."""

from enum import Enum


class Modality(str, Enum):
    """Kind of input a query carries. Determines the dispatch pipeline."""

    TEXT = "text"
    IMAGE = "image"
    LOCATION = "location"


class ToolStatus(str, Enum):
    """Outcome of a single adapter call."""

    OK = "ok"
    EMPTY = "empty"  # Ran fine, found nothing
    ERROR = "error"  # Failed, timed out, or was misused


class ResolutionStatus(str, Enum):
    """Terminal outcome of a resolution request."""

    SUCCESS = "success"
    NO_MATCH = "no_match"
    ERROR = "error"


class Metric(str, Enum):
    """Distance metric for nearest-neighbour search."""

    COSINE = "cosine"  # Higher is better (text)
    SQUARED_L2 = "squared_l2"  # Lower is better (images)


class Source(str, Enum):
    """Provenance tags for adapters and the candidates they produce."""

    GEOCODE = "geocode"
    PROPERTY = "property"
    ARCHIVE = "archive"
    IMAGE_INDEX = "image_index"
    OCR = "ocr"
    TEXT_INDEX = "text_index"
