"""
Environment variable parsing and prefix filtering.

Variables are read once per run, optionally narrowed to the names starting
with one of the configured prefixes, and turned into a fresh mapping of
key to quoted value for every file that gets rewritten.
"""

import logging
import os
from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Optional, Sequence


logger = logging.getLogger(__name__)

VariableMapping = Dict[str, str]


@dataclass(frozen=True)
class EnvironmentVariable:
    """A single KEY=VALUE pair from the environment."""
    key: str
    value: str = ""

    def __str__(self) -> str:
        return f"{self.key}={self.value}"


def parse_environment_entry(entry: str) -> Optional[EnvironmentVariable]:
    """
    Parse a raw KEY=VALUE string.

    Only the first '=' separates key and value, so the value keeps any
    further '=' characters. An entry without '=' has an empty value.

    Returns:
        The parsed variable, or None when the key would be empty
    """
    key, _, value = entry.partition('=')
    if not key:
        return None
    return EnvironmentVariable(key=key, value=value)


def parse_environment(entries: Iterable[str]) -> List[EnvironmentVariable]:
    """Parse raw KEY=VALUE strings, skipping entries with an empty key."""
    variables = []
    for entry in entries:
        variable = parse_environment_entry(entry)
        if variable is None:
            logger.debug(f"skipping environment entry without a name: {entry!r}")
            continue
        variables.append(variable)
    return variables


def read_environment(environ: Optional[Mapping[str, str]] = None) -> List[EnvironmentVariable]:
    """
    Read the process environment as raw KEY=VALUE entries and parse them.

    Args:
        environ: Mapping to read instead of os.environ

    Returns:
        Variables in the mapping's iteration order
    """
    source = os.environ if environ is None else environ
    logger.debug("processing environment variables")
    return parse_environment(f"{key}={value}" for key, value in source.items())


def filter_by_prefix(
    variables: Sequence[EnvironmentVariable],
    prefixes: Sequence[str]
) -> List[EnvironmentVariable]:
    """
    Keep the variables whose name starts with at least one prefix.

    An empty prefix list disables filtering and returns every variable.
    Relative order is preserved and a variable matching several prefixes
    is included once.
    """
    if not prefixes:
        return list(variables)

    logger.debug(
        f"filtering environment variables by {len(prefixes)} prefix(es): {list(prefixes)}"
    )

    filtered = []
    for variable in variables:
        if any(variable.key.startswith(prefix) for prefix in prefixes):
            logger.debug(f"added prefixed environment variable: {variable.key}")
            filtered.append(variable)
    return filtered


def quote_value(value: str) -> str:
    """Wrap a value in double quotes. Embedded quotes are left as they are."""
    return f'"{value}"'


def build_mapping(variables: Iterable[EnvironmentVariable]) -> VariableMapping:
    """Build the key to quoted value mapping; a repeated key keeps its last value."""
    mapping: VariableMapping = {}
    for variable in variables:
        mapping[variable.key] = quote_value(variable.value)
    return mapping


def ordered_keys(mapping: Mapping[str, str]) -> List[str]:
    """
    Order keys for line matching.

    Longest key first so that FOOBAR wins over FOO on a FOOBAR= line,
    then lexicographic for keys of equal length.
    """
    return sorted(mapping, key=lambda key: (-len(key), key))
