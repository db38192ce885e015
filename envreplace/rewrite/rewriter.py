"""In-place rewriting of KEY=... lines.

Each target file is scanned line by line. A line that starts with the name
of a selected environment variable is replaced by KEY="value"; every other
line is kept verbatim. Output is staged in a temporary file first and only
then committed back to the target:

- copy: truncate the original, seek to its start and copy the staged
  content into it (keeps inode, owner and mode)
- rename: stage next to the target and atomically rename it into place
"""

import logging
import os
import shutil
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import (
    BinaryIO, Dict, Iterable, Iterator, List, Literal, Optional, Sequence, Tuple, Union
)

from envreplace.environment import (
    EnvironmentVariable,
    VariableMapping,
    build_mapping,
    ordered_keys,
)
from envreplace.exceptions import FileAccessError, RewriteIOError


logger = logging.getLogger(__name__)

CommitStrategy = Literal["copy", "rename"]
OnError = Literal["stop", "continue"]

COMMIT_STRATEGIES = ("copy", "rename")
ON_ERROR_MODES = ("stop", "continue")
ENCODING = "utf-8"
# Undecodable bytes survive the round trip unchanged
ENCODING_ERRORS = "surrogateescape"
STAGING_PREFIX = "envreplace-"


@dataclass
class RewriteResult:
    """Outcome of rewriting a single file."""
    path: str
    success: bool
    lines_total: int = 0
    lines_rewritten: int = 0
    error: Optional[Exception] = None

    def to_dict(self) -> Dict[str, object]:
        """Convert to dict, omitting the error when there is none."""
        result: Dict[str, object] = {
            'path': self.path,
            'success': self.success,
            'lines_total': self.lines_total,
            'lines_rewritten': self.lines_rewritten,
        }
        if self.error is not None:
            result['error'] = str(self.error)
        return result


@dataclass
class RewriteSummary:
    """Per-file results of a run, in processing order."""
    results: List[RewriteResult] = field(default_factory=list)

    @property
    def succeeded(self) -> List[RewriteResult]:
        return [r for r in self.results if r.success]

    @property
    def failed(self) -> List[RewriteResult]:
        return [r for r in self.results if not r.success]

    @property
    def ok(self) -> bool:
        return not self.failed


def rewrite_line(
    line: str,
    mapping: VariableMapping,
    keys: Optional[Sequence[str]] = None
) -> Optional[str]:
    """
    Rewrite a single line if it starts with one of the mapping's keys.

    Args:
        line: Line without its terminator
        mapping: Key to quoted value mapping
        keys: Match order, defaults to ordered_keys(mapping)

    Returns:
        The replacement line, or None when no key matches
    """
    new_line, key = next(rewrite_lines([line], mapping, keys))
    return None if key is None else new_line


def _match_key(line: str, keys: Sequence[str]) -> Optional[str]:
    for key in keys:
        if line.startswith(key):
            return key
    return None


def rewrite_lines(
    lines: Iterable[str],
    mapping: VariableMapping,
    keys: Optional[Sequence[str]] = None
) -> Iterator[Tuple[str, Optional[str]]]:
    """
    Yield (output line, matched key) for every input line, in order.

    A line starting with a key becomes KEY="value"; the first key in
    match order wins and the key is None when the line is kept verbatim.
    """
    if keys is None:
        keys = ordered_keys(mapping)
    for line in lines:
        key = _match_key(line, keys)
        if key is None:
            yield line, None
        else:
            yield f"{key}={mapping[key]}", key


def _read_lines(path: str, target: BinaryIO) -> Iterator[bytes]:
    while True:
        try:
            raw = target.readline()
        except OSError as e:
            raise RewriteIOError(path, "read", str(e)) from e
        if not raw:
            return
        yield raw


def _strip_terminator(raw: bytes) -> bytes:
    if raw.endswith(b"\n"):
        raw = raw[:-1]
    if raw.endswith(b"\r"):
        raw = raw[:-1]
    return raw


class FileRewriter:
    """Rewrites files in place from a list of environment variables."""

    def __init__(
        self,
        variables: Sequence[EnvironmentVariable],
        strategy: CommitStrategy = "copy",
        temp_dir: Optional[Union[str, Path]] = None
    ):
        """
        Initialize the rewriter.

        Args:
            variables: Filtered environment variables
            strategy: How staged output replaces the target ("copy" or "rename")
            temp_dir: Directory for copy-strategy staging files (system default if None)
        """
        if strategy not in COMMIT_STRATEGIES:
            raise ValueError(f"Unknown commit strategy: {strategy}")
        self.variables = list(variables)
        self.strategy = strategy
        self.temp_dir = str(temp_dir) if temp_dir is not None else None

    def rewrite(self, path: Union[str, Path]) -> RewriteResult:
        """
        Rewrite one file in place.

        Raises:
            FileAccessError: Target or staging file cannot be opened
            RewriteIOError: Reading, writing or committing failed
        """
        path = str(path)
        logger.debug(f"processing file: {path}")

        try:
            target = open(path, 'r+b')
        except OSError as e:
            raise FileAccessError(path, e.strerror or str(e)) from e

        with target:
            # Rebuilt for every file
            mapping = build_mapping(self.variables)
            if self.strategy == "rename":
                result = self._rewrite_by_rename(path, target, mapping)
            else:
                result = self._rewrite_by_copy(path, target, mapping)

        logger.debug(
            f"rewrote {result.lines_rewritten} of {result.lines_total} line(s) in file {path}"
        )
        return result

    def _rewrite_by_copy(self, path: str, target: BinaryIO, mapping: VariableMapping) -> RewriteResult:
        try:
            staging = tempfile.TemporaryFile(mode='w+b', prefix=STAGING_PREFIX, dir=self.temp_dir)
        except OSError as e:
            raise FileAccessError(path, f"failed to create temporary file: {e}") from e

        # TemporaryFile is removed when closed
        with staging:
            result = self._stage(path, target, staging, mapping)

            operation = "truncate"
            try:
                target.truncate(0)
                operation = "seek"
                target.seek(0)
                staging.seek(0)
                operation = "copy"
                shutil.copyfileobj(staging, target)
                target.flush()
            except OSError as e:
                raise RewriteIOError(path, operation, str(e)) from e

        return result

    def _rewrite_by_rename(self, path: str, target: BinaryIO, mapping: VariableMapping) -> RewriteResult:
        directory = os.path.dirname(os.path.abspath(path))
        try:
            staging = tempfile.NamedTemporaryFile(
                mode='w+b', prefix=STAGING_PREFIX, suffix='.tmp', dir=directory, delete=False
            )
        except OSError as e:
            raise FileAccessError(path, f"failed to create temporary file: {e}") from e

        try:
            with staging:
                result = self._stage(path, target, staging, mapping)
                try:
                    os.fsync(staging.fileno())
                except OSError as e:
                    raise RewriteIOError(path, "write", str(e)) from e

            try:
                shutil.copymode(path, staging.name)
                os.replace(staging.name, path)
            except OSError as e:
                raise RewriteIOError(path, "rename", str(e)) from e
        except Exception:
            # Clean up staging file if the rename did not happen
            if os.path.exists(staging.name):
                os.unlink(staging.name)
            raise

        return result

    def _stage(
        self,
        path: str,
        target: BinaryIO,
        staging: BinaryIO,
        mapping: VariableMapping
    ) -> RewriteResult:
        """Write the rewritten content of target into staging."""
        result = RewriteResult(path=path, success=True)
        lines = (
            _strip_terminator(raw).decode(ENCODING, ENCODING_ERRORS)
            for raw in _read_lines(path, target)
        )

        for line, key in rewrite_lines(lines, mapping):
            if key is not None:
                logger.debug(f"updating {key} to value {mapping[key]} in file {path}")
                logger.debug(f"writing new line to file: {line}")
                result.lines_rewritten += 1

            try:
                staging.write(line.encode(ENCODING, ENCODING_ERRORS) + b"\n")
            except OSError as e:
                raise RewriteIOError(path, "write", str(e)) from e
            result.lines_total += 1

        try:
            staging.flush()
        except OSError as e:
            raise RewriteIOError(path, "write", str(e)) from e

        return result


def rewrite_files(
    paths: Sequence[Union[str, Path]],
    variables: Sequence[EnvironmentVariable],
    on_error: OnError = "stop",
    strategy: CommitStrategy = "copy",
    temp_dir: Optional[Union[str, Path]] = None
) -> RewriteSummary:
    """
    Rewrite files one after another, in the order given.

    With on_error="stop" the first failure is raised, leaving files already
    processed rewritten and the remaining ones untouched. With
    on_error="continue" failures are recorded and the run goes on.
    """
    if on_error not in ON_ERROR_MODES:
        raise ValueError(f"Unknown on_error mode: {on_error}")

    rewriter = FileRewriter(variables, strategy=strategy, temp_dir=temp_dir)
    summary = RewriteSummary()

    logger.debug(f"processing {len(paths)} file(s): {[str(p) for p in paths]}")

    for path in paths:
        try:
            summary.results.append(rewriter.rewrite(path))
        except (FileAccessError, RewriteIOError) as e:
            if on_error == "stop":
                raise
            logger.error(str(e))
            summary.results.append(RewriteResult(path=str(path), success=False, error=e))

    return summary
