from .Classifier import (
    DOCUMENT_EXTENSIONS,
    IMAGE_EXTENSIONS,
    PREDICATES,
    classify,
    is_document_url,
    is_image_url,
    placements_for,
)

__all__ = [
    "DOCUMENT_EXTENSIONS",
    "IMAGE_EXTENSIONS",
    "PREDICATES",
    "classify",
    "is_document_url",
    "is_image_url",
    "placements_for",
]
