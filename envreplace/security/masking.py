"""
Value masking for verbose output.

Verbose runs log every value written into a file. With --mask-values the
values of the selected environment variables are replaced by '***' in log
records before they are emitted.
"""

import logging
import re
from typing import Iterable, Set

from envreplace.environment import EnvironmentVariable, quote_value


MASK = '***'
MIN_RAW_LENGTH = 4


class ValueMasker:
    """Tracks values to hide and masks them in text."""

    def __init__(self):
        self._masked_values: Set[str] = set()

    def add_values(self, values: Iterable[str]):
        """Track values for masking. Empty strings are never masked."""
        for value in values:
            if value:
                self._masked_values.add(value)

    def add_variables(self, variables: Iterable[EnvironmentVariable]):
        """
        Track the quoted value of each variable, and the raw value when it
        is at least MIN_RAW_LENGTH characters long.
        """
        for variable in variables:
            if not variable.value:
                continue
            self.add_values([quote_value(variable.value)])
            if len(variable.value) >= MIN_RAW_LENGTH:
                self.add_values([variable.value])

    def mask_text(self, text: str) -> str:
        """
        Mask known values in text.

        Longer values are replaced first so a value that contains another
        is not left partially visible.
        """
        if not text or not self._masked_values:
            return text

        masked = text
        for value in sorted(self._masked_values, key=len, reverse=True):
            if value in masked:
                masked = re.sub(re.escape(value), MASK, masked)

        return masked

    def clear(self):
        self._masked_values.clear()


class ValueMaskingFilter(logging.Filter):
    """Logging filter that masks tracked values in records."""

    def __init__(self, masker: ValueMasker):
        super().__init__()
        self.masker = masker

    def filter(self, record: logging.LogRecord) -> bool:
        """Mask the message and its arguments; always keeps the record."""
        record.msg = self.masker.mask_text(str(record.msg))

        if record.args:
            if isinstance(record.args, dict):
                record.args = {
                    k: self.masker.mask_text(v) if isinstance(v, str) else v
                    for k, v in record.args.items()
                }
            elif isinstance(record.args, tuple):
                record.args = tuple(
                    self.masker.mask_text(arg) if isinstance(arg, str) else arg
                    for arg in record.args
                )

        return True
