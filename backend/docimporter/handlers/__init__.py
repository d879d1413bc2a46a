"""Stock conditions and handlers for the common cases."""

from docimporter.handlers.conditions import BlankCondition, MetadataCondition, ReferenceCondition
from docimporter.handlers.filters import (
    EmptyMetadataFilter,
    MetadataFilter,
    ReferenceFilter,
    RejectFilter,
    TextFilter,
    content_type_filter,
)
from docimporter.handlers.splitters import CsvSplitter, PageSplitter, SplitField
from docimporter.handlers.taggers import (
    ConstantTagger,
    DeleteTagger,
    DocumentLengthTagger,
    OnConflict,
    UUIDTagger,
)
from docimporter.handlers.transformers import ReplaceTransformer, StripBetweenTransformer

__all__ = [
    "BlankCondition",
    "ConstantTagger",
    "CsvSplitter",
    "DeleteTagger",
    "DocumentLengthTagger",
    "EmptyMetadataFilter",
    "MetadataCondition",
    "MetadataFilter",
    "OnConflict",
    "PageSplitter",
    "ReferenceCondition",
    "ReferenceFilter",
    "RejectFilter",
    "ReplaceTransformer",
    "SplitField",
    "StripBetweenTransformer",
    "TextFilter",
    "UUIDTagger",
    "content_type_filter",
]
