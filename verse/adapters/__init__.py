"""Ecosystem adapters: module discovery and version write-back."""

from .errors import AdapterError
from .gradle import (
    GradleDetector,
    GradleVersionWriter,
    module_id_for_property,
    property_name,
    read_versions,
)
from .hierarchy import module_name, parse_hierarchy
from .properties import parse_properties, upsert_properties

__all__ = [
    "AdapterError",
    "GradleDetector",
    "GradleVersionWriter",
    "module_id_for_property",
    "module_name",
    "parse_hierarchy",
    "parse_properties",
    "property_name",
    "read_versions",
    "upsert_properties",
]
