"""Version command implementation."""

from argparse import Namespace

from envreplace.config import VersionInfo


def show_version(args: Namespace) -> int:
    """Print build metadata."""
    print(VersionInfo.from_environment().render())
    return 0
