"""Content formatting: line endings, token filtering, paths, and scanning."""

from assemblist.formatting.filtering import FilterContext, load_properties
from assemblist.formatting.formatter import FileFormatter
from assemblist.formatting.line_endings import LineEnding
from assemblist.formatting.paths import (
    evaluate_file_name_mapping,
    get_distribution_name,
    get_output_directory,
    to_relative,
)
from assemblist.formatting.scanner import DEFAULT_EXCLUDES, scan

__all__ = [
    "DEFAULT_EXCLUDES",
    "FileFormatter",
    "FilterContext",
    "LineEnding",
    "evaluate_file_name_mapping",
    "get_distribution_name",
    "get_output_directory",
    "load_properties",
    "scan",
    "to_relative",
]
