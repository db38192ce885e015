"""Main CLI entry point for envreplace."""

import argparse
import sys
from typing import Optional

from envreplace.config import LOG_LEVELS
from envreplace.rewrite import COMMIT_STRATEGIES, ON_ERROR_MODES

from .commands import run_replace, show_version


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the envreplace CLI."""
    parser = argparse.ArgumentParser(
        prog='envreplace',
        description='Replace KEY=... lines in files with values from the environment'
    )

    parser.add_argument(
        '-f', '--file',
        action='append',
        metavar='PATH',
        help='File(s) to replace environment variables in (repeatable, comma separated)'
    )
    parser.add_argument(
        '-p', '--prefix',
        action='append',
        metavar='PREFIX',
        help='Prefix(es) to filter environment variables by (repeatable, comma separated)'
    )
    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        default=None,
        help='Verbose output'
    )
    parser.add_argument(
        '--quiet',
        action='store_true',
        default=None,
        help='Suppress non-error output'
    )
    parser.add_argument(
        '--log-level',
        choices=LOG_LEVELS,
        help='Set log level'
    )
    parser.add_argument(
        '--config',
        type=str,
        metavar='PATH',
        help='YAML config file with defaults for these options'
    )
    parser.add_argument(
        '--on-error',
        choices=ON_ERROR_MODES,
        help='Stop at the first failing file (default) or continue with the rest'
    )
    parser.add_argument(
        '--commit',
        choices=COMMIT_STRATEGIES,
        help='Copy staged output back into the file (default) or rename it into place'
    )
    parser.add_argument(
        '--mask-values',
        action='store_true',
        default=None,
        help='Mask variable values in log output'
    )

    subparsers = parser.add_subparsers(dest='command', help='Commands')
    subparsers.add_parser('version', help='Print the version information for this application')

    return parser


def main(args: Optional[list] = None) -> int:
    """Main entry point for the CLI."""
    parser = create_parser()
    parsed_args = parser.parse_args(args)

    if parsed_args.command == 'version':
        return show_version(parsed_args)

    return run_replace(parsed_args)


if __name__ == '__main__':
    sys.exit(main())
