"""envreplace: rewrite KEY=... lines in files from the process environment."""

__version__ = "0.1.0"
