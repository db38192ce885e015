"""Replace command: rewrite the given files from the process environment."""

import logging
from argparse import Namespace
from typing import Any, Dict, List

from envreplace.config import ConfigLoader, RunConfig
from envreplace.environment import filter_by_prefix, read_environment
from envreplace.exceptions import ConfigurationError, FileAccessError, RewriteIOError
from envreplace.rewrite import rewrite_files
from envreplace.security import ValueMasker, ValueMaskingFilter


logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def cli_values(args: Namespace) -> Dict[str, Any]:
    """Collect flag values; flags that were not given stay None."""
    return {
        'file': getattr(args, 'file', None),
        'prefix': getattr(args, 'prefix', None),
        'verbose': getattr(args, 'verbose', None),
        'quiet': getattr(args, 'quiet', None),
        'log_level': getattr(args, 'log_level', None),
        'on_error': getattr(args, 'on_error', None),
        'commit': getattr(args, 'commit', None),
        'mask_values': getattr(args, 'mask_values', None),
    }


def setup_logging(level: int) -> None:
    """Send diagnostics to stderr at the given level."""
    logging.basicConfig(level=level, format=LOG_FORMAT)
    logging.getLogger().setLevel(level)


def install_masking(masker: ValueMasker) -> List[logging.Handler]:
    """Attach a masking filter to every root handler; returns the handlers touched."""
    masking_filter = ValueMaskingFilter(masker)
    handlers = list(logging.getLogger().handlers)
    for handler in handlers:
        handler.addFilter(masking_filter)
    return handlers


def remove_masking(handlers: List[logging.Handler]) -> None:
    for handler in handlers:
        for f in list(handler.filters):
            if isinstance(f, ValueMaskingFilter):
                handler.removeFilter(f)


def replace(config: RunConfig) -> int:
    """
    Rewrite every configured file.

    Returns:
        0 when every file was rewritten, 1 when any file failed

    Raises:
        ConfigurationError: No files configured
        FileAccessError, RewriteIOError: First failure with on_error="stop"
    """
    config.require_files()

    variables = read_environment()
    variables = filter_by_prefix(variables, config.prefixes)
    logger.debug(f"read total of {len(variables)} environment variables")

    handlers: List[logging.Handler] = []
    if config.mask_values:
        masker = ValueMasker()
        masker.add_variables(variables)
        handlers = install_masking(masker)

    try:
        summary = rewrite_files(
            config.files,
            variables,
            on_error=config.on_error,
            strategy=config.commit
        )
    finally:
        remove_masking(handlers)

    if not summary.ok:
        logger.error(
            f"{len(summary.failed)} of {len(summary.results)} file(s) failed: "
            f"{[r.path for r in summary.failed]}"
        )
        return 1

    rewritten = sum(r.lines_rewritten for r in summary.results)
    logger.info(f"rewrote {rewritten} line(s) in {len(summary.results)} file(s)")
    return 0


def run_replace(args: Namespace) -> int:
    """Run the replace command and map errors to exit codes."""
    # Provisional level until the full configuration is known
    setup_logging(logging.DEBUG if getattr(args, 'verbose', None) else logging.WARNING)

    try:
        config = ConfigLoader().load(cli_values(args), getattr(args, 'config', None))
        setup_logging(config.logging_level)
        return replace(config)
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        return e.exit_code
    except (FileAccessError, RewriteIOError) as e:
        logger.error(str(e))
        return e.exit_code
    except Exception as e:
        logger.error(f"Unexpected error: {e}", exc_info=True)
        return 1
