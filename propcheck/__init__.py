"""
propcheck — Property-Based Testing
==================================

State a property that should hold for every input, let the package draw
random inputs of growing size, and get back either a pass or the smallest
counterexample it could find by shrinking.

Core modules
------------
random_gen
    Splittable, reproducible pseudo-random source (``StdGen``).
rose
    Lazy rose trees carrying a value and its shrink candidates.
gen
    The ``Gen`` generator type and its combinators.
compose
    Imperative generator construction (``compose``).
property
    Test results, ``Property`` and the property combinators.
quantifiers
    ``for_all``, ``for_all_shrink``, ``exists``.
arbitrary
    Generator/shrinker pairs for primitive values.
shrink_search
    Greedy descent to a minimal failing case.
checker
    The test loop (``quick_check``, ``run_property``) and its results.
config
    ``Arguments`` and the replay token grammar.
reporter
    Human-readable output.

Quick start
-----------
>>> from propcheck import Int, ListOf, for_all, quick_check
>>> result = quick_check(
...     for_all(ListOf(Int()), lambda xs: list(reversed(list(reversed(xs)))) == xs),
...     silence=True,
... )
>>> result.passed
True

Package layout
--------------
::

    propcheck/
    ├── __init__.py            ← this file
    ├── __main__.py            ← ``python -m propcheck``
    ├── main.py                ← CLI
    ├── errors.py
    ├── random_gen.py
    ├── rose.py
    ├── gen.py
    ├── compose.py
    ├── property.py
    ├── quantifiers.py
    ├── arbitrary.py
    ├── shrink_search.py
    ├── checker.py
    ├── config.py
    └── reporter.py
"""

from __future__ import annotations

import importlib
import logging
import sys
from typing import TYPE_CHECKING, List

# ---------------------------------------------------------------------------
# Package metadata
# ---------------------------------------------------------------------------

__version__ = "0.1.0"
__license__ = "MIT"
__all__: List[str] = []          # populated below

_log = logging.getLogger(__name__)
_log.addHandler(logging.NullHandler())

# ---------------------------------------------------------------------------
# Internal registry: (module_name, list_of_names_to_import)
# ---------------------------------------------------------------------------

_CORE_MODULES = {
    "errors": [
        "PropCheckError",
        "GeneratorConfigError",
        "EmptyChoiceError",
        "InvalidWeightError",
        "GeneratorExhaustedError",
        "NotTestableError",
        "ArgumentsError",
        "ReplayFormatError",
        "PropertyTargetError",
        "ErrorCodes",
    ],
    "random_gen": [
        "StdGen",
        "new_std_gen",
        "reseed_default",
    ],
    "rose": [
        "Rose",
        "RoseValue",
        "RoseSuspended",
        "join_rose",
        "rose_sequence",
    ],
    "gen": [
        "Gen",
        "sequence",
        "join",
        "delay",
        "promote",
    ],
    "compose": [
        "GenComposer",
        "compose",
    ],
    "property": [
        "TestResult",
        "Prop",
        "Property",
        "Discard",
        "Quantification",
        "CallbackTiming",
        "CallbackKind",
        "Callback",
        "as_property",
        "conjoin",
        "disjoin",
        "conjamb",
        "implies",
        "equals",
    ],
    "quantifiers": [
        "for_all",
        "for_all_shrink",
        "for_all_no_shrink",
        "exists",
    ],
    "arbitrary": [
        "Arbitrary",
        "Int",
        "Bool",
        "Float",
        "Char",
        "Text",
        "ListOf",
        "TupleOf",
        "OptionalOf",
        "instance_for",
        "shrink_int",
        "shrink_list",
    ],
    "checker": [
        "Result",
        "Success",
        "GaveUp",
        "Failure",
        "ExistentialFailure",
        "NoExpectedFailure",
        "InsufficientCoverage",
        "quick_check",
        "run_property",
    ],
    "config": [
        "Arguments",
        "parse_replay",
        "format_replay",
    ],
    "reporter": [
        "TextReporter",
    ],
}


def _import_names(module_rel_name: str, names: List[str]) -> None:
    """Import *names* from a submodule and bind them in the package namespace."""
    mod = importlib.import_module(f"{__name__}.{module_rel_name}")
    current_module = sys.modules[__name__]
    for name in names:
        if not hasattr(mod, name):
            raise AttributeError(f"propcheck.{module_rel_name} does not export '{name}'")
        setattr(current_module, name, getattr(mod, name))
        __all__.append(name)
    setattr(current_module, module_rel_name, mod)
    __all__.append(module_rel_name)


for _mod, _names in _CORE_MODULES.items():
    _import_names(_mod, _names)

del _mod, _names

if TYPE_CHECKING:
    from .arbitrary import Arbitrary, Bool, Char, Float, Int, ListOf, OptionalOf, Text, TupleOf
    from .checker import Failure, GaveUp, Result, Success, quick_check, run_property
    from .config import Arguments
    from .gen import Gen
    from .property import Property, TestResult, conjoin, disjoin, implies
    from .quantifiers import exists, for_all


def list_submodules() -> List[str]:
    """Return the names of the core submodules."""
    return sorted(_CORE_MODULES)
