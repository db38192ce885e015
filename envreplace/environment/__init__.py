"""
Environment module.
Reads the process environment and selects the variables used for rewriting.
"""

from .filter import (
    EnvironmentVariable,
    VariableMapping,
    build_mapping,
    filter_by_prefix,
    ordered_keys,
    parse_environment,
    parse_environment_entry,
    quote_value,
    read_environment,
)

__all__ = [
    'EnvironmentVariable',
    'VariableMapping',
    'build_mapping',
    'filter_by_prefix',
    'ordered_keys',
    'parse_environment',
    'parse_environment_entry',
    'quote_value',
    'read_environment',
]
