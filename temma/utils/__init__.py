"""
Temma Utils Package

- naming: dotted class paths and controller/action name conventions
- urls: URL path manipulation utilities
- contracts: input data validation
"""

from .contracts import filter_data, parse_contract
from .naming import (
    import_string,
    kebab_to_camel,
    lcfirst,
    qualified_name,
    starts_lowercase,
    ucfirst,
)
from .urls import split_path

__all__ = [
    "filter_data",
    "parse_contract",
    "import_string",
    "kebab_to_camel",
    "lcfirst",
    "qualified_name",
    "starts_lowercase",
    "ucfirst",
    "split_path",
]
