#!/usr/bin/env python3
"""propcheck/main.py — command line front-end.

Usage examples
--------------
    # Check a property defined at module level
    python -m propcheck check tests.props:prop_reverse_involutive

    # Reproduce a reported failure
    python -m propcheck check tests.props:prop_sorted \\
        --replay "Replay with 1958234 128475 and size 3"

    # Look at what a generator produces
    python -m propcheck sample tests.props:small_trees --size 5

A target is ``MODULE:ATTRIBUTE``.  For ``check`` the attribute must be
testable (a Property, a bool, a Gen of testables ...) or a zero-argument
function returning one.  For ``sample`` it must be a Gen or an Arbitrary
instance, or a zero-argument function returning one.

Exit codes
----------
    0   The property passed.
    1   The run gave up (too many discarded test cases).
    2   Infrastructure failure (bad target, bad arguments, ...).
    3   Property violation (failure, unmet coverage, missing expected
        failure, unsatisfied existential).
"""

from __future__ import annotations

import argparse
import importlib
import json
import logging
import os
import sys
import textwrap
from typing import Any, Dict, Optional, Sequence

from . import __version__
from .arbitrary import Arbitrary, instance_for
from .checker import ExistentialFailure, Failure, GaveUp, Result, run_property
from .config import Arguments, format_replay
from .errors import ErrorCodes, NotTestableError, PropCheckError, PropertyTargetError
from .gen import Gen
from .property import Property, as_property
from .reporter import TextReporter

_log = logging.getLogger("propcheck")

EXIT_OK: int = 0
EXIT_GAVE_UP: int = 1
EXIT_INFRA: int = 2
EXIT_VIOLATION: int = 3

_CLI_HANDLER = "propcheck-cli"


# ===========================================================================
# Utility helpers
# ===========================================================================

def _configure_logging(verbosity: int) -> None:
    """Set up the ``propcheck`` logger.

    Parameters
    ----------
    verbosity:
        0 → WARNING, 1 → INFO, 2+ → DEBUG.
    """
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG

    handler = logging.StreamHandler(sys.stderr)
    handler.set_name(_CLI_HANDLER)
    handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s [%(levelname)-5.5s] %(name)s: %(message)s",
            datefmt="%H:%M:%S",
        )
    )
    root = logging.getLogger("propcheck")
    root.setLevel(level)
    for old in list(root.handlers):
        if old.get_name() == _CLI_HANDLER:
            root.removeHandler(old)
    root.addHandler(handler)


def _load_target(spec: str) -> Any:
    """Resolve ``MODULE:ATTR`` (ATTR may be dotted) to a Python object."""
    module_name, sep, attr_path = spec.partition(":")
    if not sep or not module_name or not attr_path:
        raise PropertyTargetError(
            f"invalid target {spec!r}",
            hint="Expected MODULE:ATTRIBUTE, e.g. tests.props:prop_sorted",
        )

    cwd = os.getcwd()
    if cwd not in sys.path:
        sys.path.insert(0, cwd)

    try:
        obj: Any = importlib.import_module(module_name)
    except ImportError as exc:
        raise PropertyTargetError(
            f"cannot import module {module_name!r}: {exc}", cause=exc
        ) from exc
    for part in attr_path.split("."):
        try:
            obj = getattr(obj, part)
        except AttributeError as exc:
            raise PropertyTargetError(
                f"{module_name!r} has no attribute {attr_path!r}", cause=exc
            ) from exc

    if _is_factory(obj):
        _log.debug("calling factory %s", spec)
        obj = obj()
    return obj


def _is_factory(obj: Any) -> bool:
    return (
        callable(obj)
        and not isinstance(obj, (Property, Gen, Arbitrary, type))
    )


def _result_to_dict(result: Result) -> Dict[str, Any]:
    out: Dict[str, Any] = {
        "outcome": type(result).__name__,
        "passed": result.passed,
        "num_tests": result.num_tests,
        "num_discarded": result.num_discarded,
        "seed": str(result.seed),
        "size": result.size,
        "replay": format_replay(result.seed, result.size),
        "labels": dict(result.labels),
    }
    if isinstance(result, Failure):
        out["num_shrinks"] = result.num_shrinks
        out["reason"] = result.reason
    elif isinstance(result, ExistentialFailure):
        out["reason"] = result.reason
    return out


def _exit_code(result: Result) -> int:
    if result.passed:
        return EXIT_OK
    if isinstance(result, GaveUp):
        return EXIT_GAVE_UP
    return EXIT_VIOLATION


# ===========================================================================
# Commands
# ===========================================================================

def cmd_check(args: argparse.Namespace) -> int:
    """Run a property and report the outcome."""
    overrides: Dict[str, Any] = {"name": args.name or args.target}
    for field_name in ("max_success", "max_discard", "max_size", "max_shrinks"):
        value = getattr(args, field_name)
        if value is not None:
            overrides[field_name] = value
    if args.quiet:
        overrides["silence"] = True

    arguments = Arguments.from_environ(**overrides)
    if args.replay:
        arguments = arguments.with_replay(args.replay)

    target = _load_target(args.target)
    try:
        prop = as_property(target)
    except NotTestableError as exc:
        raise PropertyTargetError(
            f"{args.target} is not testable: {exc.message}",
            code=ErrorCodes.TARGET_NOT_TESTABLE,
            cause=exc,
        ) from exc

    if args.format == "json":
        reporter = TextReporter(stream=sys.stderr, silent=arguments.silence)
        result = run_property(prop, arguments, reporter)
        json.dump(_result_to_dict(result), sys.stdout, indent=2)
        sys.stdout.write("\n")
    else:
        result = run_property(prop, arguments)
    return _exit_code(result)


def cmd_sample(args: argparse.Namespace) -> int:
    """Print values drawn from a generator, one per line."""
    target = _load_target(args.target)
    if isinstance(target, type):
        target = target() if issubclass(target, Arbitrary) else instance_for(target)
    if isinstance(target, Gen):
        gen = target
    elif hasattr(target, "arbitrary"):
        gen = target.arbitrary()
    else:
        raise PropertyTargetError(
            f"{args.target} is neither a Gen nor an Arbitrary instance",
            code=ErrorCodes.TARGET_NOT_TESTABLE,
        )

    if args.size is not None:
        gen = gen.resize(args.size)
    for value in gen.sample():
        sys.stdout.write(repr(value) + "\n")
    return EXIT_OK


# ===========================================================================
# Argument parser
# ===========================================================================

def _build_parser() -> argparse.ArgumentParser:
    """Construct the CLI argument parser with subcommands."""

    parser = argparse.ArgumentParser(
        prog="propcheck",
        description="Property-based testing: check properties, sample generators.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent("""\
            examples:
              propcheck check tests.props:prop_sorted --max-success 500
              propcheck check tests.props:prop_sorted --replay "1958234 128475 3"
              propcheck sample tests.props:small_trees --size 5
        """),
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (-v info, -vv debug).",
    )

    subparsers = parser.add_subparsers(
        dest="command",
        title="commands",
        metavar="<command>",
    )

    # --- check -------------------------------------------------------------
    p_check = subparsers.add_parser(
        "check",
        help="Run a property.",
        description="Check a property and print the outcome.",
    )
    p_check.add_argument("target", metavar="MODULE:ATTR", help="Property to check.")
    p_check.add_argument(
        "--replay",
        default=None,
        metavar="TOKEN",
        help='Replay token, e.g. "1958234 128475 3".',
    )
    p_check.add_argument(
        "--name",
        default=None,
        help="Name shown in reports (default: the target).",
    )
    p_check.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Print nothing; report through the exit code only.",
    )
    p_check.add_argument(
        "-f", "--format",
        choices=["text", "json"],
        default="text",
        help="Output format (default: text).",
    )
    g = p_check.add_argument_group("budgets")
    g.add_argument(
        "--max-success",
        type=int,
        default=None,
        metavar="N",
        help="Passing test cases required (default: 100).",
    )
    g.add_argument(
        "--max-discard",
        type=int,
        default=None,
        metavar="N",
        help="Discarded test cases tolerated (default: 500).",
    )
    g.add_argument(
        "--max-size",
        type=int,
        default=None,
        metavar="N",
        help="Largest size parameter (default: 100).",
    )
    g.add_argument(
        "--max-shrinks",
        type=int,
        default=None,
        metavar="N",
        help="Stop shrinking after N successful steps (default: unlimited).",
    )
    p_check.set_defaults(func=cmd_check)

    # --- sample ------------------------------------------------------------
    p_sample = subparsers.add_parser(
        "sample",
        help="Print sample values of a generator.",
        description="Draw one value at each size from 2 to 20 and print it.",
    )
    p_sample.add_argument("target", metavar="MODULE:ATTR", help="Generator to sample.")
    p_sample.add_argument(
        "--size",
        type=int,
        default=None,
        metavar="N",
        help="Draw every value at size N instead.",
    )
    p_sample.set_defaults(func=cmd_sample)

    return parser


# ===========================================================================
# Main entry point
# ===========================================================================

def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the propcheck CLI.

    Parameters
    ----------
    argv:
        Command-line arguments.  ``None`` → ``sys.argv[1:]``.

    Returns
    -------
    int
        Exit code (see module docstring for semantics).
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    _configure_logging(args.verbose)

    if not hasattr(args, "func"):
        parser.print_help(sys.stderr)
        return EXIT_INFRA

    try:
        return args.func(args)
    except PropCheckError as exc:
        if getattr(args, "format", "text") == "json":
            json.dump({"error": exc.to_dict()}, sys.stdout, indent=2)
            sys.stdout.write("\n")
        else:
            sys.stderr.write(f"propcheck: {exc}\n")
        return EXIT_INFRA
    except KeyboardInterrupt:
        _log.info("Interrupted by user.")
        return 130
    except Exception as exc:
        _log.error("Unhandled exception: %s", exc, exc_info=True)
        return EXIT_INFRA


if __name__ == "__main__":
    raise SystemExit(main())
