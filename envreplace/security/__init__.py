"""Security module for masking rewritten values in diagnostics."""

from .masking import ValueMasker, ValueMaskingFilter

__all__ = ['ValueMasker', 'ValueMaskingFilter']
