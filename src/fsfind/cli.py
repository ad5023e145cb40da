"""
Command-line front door for fsfind.

Parses predicate flags in the order they were given, builds a MatchCriteria,
walks the requested directory and prints one matching path per line.
"""

import argparse
import logging
import os
import sys
from typing import List, Optional, TextIO

from .config.parser import ConfigParser, ConfigurationError
from .models.config import FinderSettings
from .models.criteria import MatchCriteria
from .models.matchers import MatcherError
from .tools.fs_walker import EntryReadError, FSWalker


logger = logging.getLogger(__name__)

PREDICATE_FLAGS = ['--name', '--iname', '--regex', '--size', '--type', '--depth']

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2


class _PredicateAction(argparse.Action):
    """Collect predicate flags into one ordered list of (flag, value) tokens."""

    def __call__(self, parser, namespace, values, option_string=None):
        tokens = list(getattr(namespace, self.dest, None) or [])
        tokens.append((option_string.lstrip('-'), values))
        setattr(namespace, self.dest, tokens)


def _attach_dash_values(argv: List[str]) -> List[str]:
    """
    Glue predicate values that start with '-' onto their flag.

    argparse would otherwise read ``--size -10K`` as two options.
    """
    result: List[str] = []
    i = 0
    while i < len(argv):
        arg = argv[i]
        if arg in PREDICATE_FLAGS and i + 1 < len(argv) and argv[i + 1].startswith('-') \
                and argv[i + 1] not in PREDICATE_FLAGS:
            result.append(f"{arg}={argv[i + 1]}")
            i += 2
            continue
        result.append(arg)
        i += 1
    return result


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="fsfind",
        allow_abbrev=False,
        description="Recursively list the entries under a directory that match every given predicate.",
    )
    parser.add_argument("dir", nargs="?", default=None,
                        help="Directory to search (default: configured root, usually '.')")
    parser.add_argument("--name", dest="predicates", action=_PredicateAction, metavar="GLOB",
                        help="Base name matches the shell glob")
    parser.add_argument("--iname", dest="predicates", action=_PredicateAction, metavar="GLOB",
                        help="Like --name, ignoring case")
    parser.add_argument("--regex", dest="predicates", action=_PredicateAction, metavar="PATTERN",
                        help="Base name contains a match for the regular expression")
    parser.add_argument("--size", dest="predicates", action=_PredicateAction, metavar="SIZE",
                        help="File size is exactly N, more than +N or less than -N (units B, K, M, G)")
    parser.add_argument("--type", dest="predicates", action=_PredicateAction, metavar="TYPE",
                        help="Entry is a file (f), directory (d) or symlink (s)")
    parser.add_argument("--depth", dest="predicates", action=_PredicateAction, metavar="N",
                        help="Descend at most N levels below the starting directory")
    parser.add_argument("--config", "-c", default=None,
                        help="Path to configuration file")
    parser.add_argument("--verbose", "-v", action="count", default=0,
                        help="Log progress (repeat for debug output)")
    parser.set_defaults(predicates=[])
    return parser


def _configure_logging(settings: FinderSettings, verbosity: int) -> None:
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = settings.get_log_level()
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s", stream=sys.stderr)


def _error(message: str, stream: TextIO) -> None:
    print(f"fsfind: {message}", file=stream)


def _emit_path(path: str, stream: TextIO) -> None:
    """Print one path, writing undecodable names back as their original bytes."""
    buffer = getattr(stream, "buffer", None)
    if buffer is None:
        print(path, file=stream)
    else:
        buffer.write(os.fsencode(path) + b"\n")


def main(argv: Optional[List[str]] = None, stdout: Optional[TextIO] = None,
         stderr: Optional[TextIO] = None) -> int:
    """
    Run fsfind with the given arguments.

    Args:
        argv: Command-line arguments (defaults to sys.argv[1:])
        stdout: Stream receiving matched paths
        stderr: Stream receiving diagnostics

    Returns:
        Process exit code
    """
    stdout = stdout or sys.stdout
    stderr = stderr or sys.stderr
    argv = list(sys.argv[1:] if argv is None else argv)

    args = build_parser().parse_args(_attach_dash_values(argv))

    try:
        result = ConfigParser().load_config(args.config)
    except ConfigurationError as e:
        _error(str(e), stderr)
        return EXIT_USAGE

    settings = result.config
    _configure_logging(settings, args.verbose)
    for warning in result.warnings:
        logger.debug(warning)

    has_depth_flag = any(flag == 'depth' for flag, _ in args.predicates)
    try:
        criteria = MatchCriteria.from_tokens(
            args.predicates,
            max_depth=None if has_depth_flag else settings.max_depth,
        )
    except MatcherError as e:
        _error(str(e), stderr)
        return EXIT_USAGE

    root = args.dir if args.dir is not None else settings.root
    if not os.path.lexists(root):
        _error(f"{root}: no such file or directory", stderr)
        return EXIT_FAILURE

    def report(error: EntryReadError) -> None:
        if settings.report_errors:
            _error(str(error), stderr)

    walker = FSWalker(sort_entries=settings.sort_entries, on_error=report)
    stdout.flush()
    for path in walker.walk(root, criteria):
        _emit_path(path, stdout)
    stdout.flush()

    logger.info(f"Walk finished: {walker.get_stats()}")
    return EXIT_FAILURE if walker.get_errors() else EXIT_OK


def run() -> None:
    """Console script entry point."""
    sys.exit(main())
