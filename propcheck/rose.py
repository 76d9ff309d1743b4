"""
propcheck.rose
==============

Lazy rose trees: a value together with a lazily computed, ordered list of
shrink candidates, each itself a rose tree.

Variants
--------
``RoseValue``
    A root thunk plus a thunk producing the children.  The root is
    memoised: it is the evaluation of a test case, which must run at most
    once.  Children are *not* memoised so that an explored shrink path does
    not pin the whole tree in memory.
``RoseSuspended``
    A thunk producing another rose.  Used to defer effects (callbacks,
    predicate evaluation, exception protection) until the test loop forces
    them, in order.

``reduce`` forces suspended nodes with a loop, so arbitrarily long
suspension chains cost no stack.

Invariant: no child is value-equal to its parent's root (otherwise the
shrink search could revisit the same candidate forever); children are
ordered smallest/most-promising first.
"""

from __future__ import annotations

import abc
from typing import Any, Callable, Generic, List, Sequence, Tuple, TypeVar

from .errors import ErrorCodes, InternalError

A = TypeVar("A")
B = TypeVar("B")

_UNSET = object()


class Rose(abc.ABC, Generic[A]):
    """Abstract base of the two rose variants."""

    # -- Construction ----------------------------------------------------

    @staticmethod
    def pure(value: A) -> "RoseValue[A]":
        return RoseValue(lambda: value, list)

    @staticmethod
    def node(value: A, children: Callable[[], List["Rose[A]"]]) -> "RoseValue[A]":
        """A value node whose root is already known."""
        return RoseValue(lambda: value, children)

    # -- Forcing ---------------------------------------------------------

    def reduce(self) -> "RoseValue[A]":
        """Force suspended nodes until a value node appears."""
        rose: Rose[A] = self
        while isinstance(rose, RoseSuspended):
            rose = rose.force()
        if not isinstance(rose, RoseValue):
            raise InternalError(
                f"rose action produced {type(rose).__name__}, not a rose",
                code=ErrorCodes.UNREDUCED_ROSE,
            )
        return rose

    # -- Functor / Monad -------------------------------------------------

    @abc.abstractmethod
    def map(self, f: Callable[[A], B]) -> "Rose[B]":
        ...

    @abc.abstractmethod
    def on_rose(self, f: Callable[[A, List["Rose[A]"]], "Rose[A]"]) -> "Rose[A]":
        """Apply *f* to the root and children of the first value node."""
        ...

    def flat_map(self, f: Callable[[A], "Rose[B]"]) -> "Rose[B]":
        return join_rose(self.map(f))

    def ap(self, fn: "Rose[Callable[[A], B]]") -> "Rose[B]":
        """Apply the root function of *fn* to every node of this tree."""
        return self.map(fn.reduce().root())


class RoseValue(Rose[A]):
    """A value with lazily computed children."""

    __slots__ = ("_root_thunk", "_root", "children")

    def __init__(
        self,
        root: Callable[[], A],
        children: Callable[[], List[Rose[A]]],
    ) -> None:
        self._root_thunk = root
        self._root: object = _UNSET
        self.children = children

    def root(self) -> A:
        if self._root is _UNSET:
            self._root = self._root_thunk()
            self._root_thunk = None  # type: ignore[assignment]
        return self._root  # type: ignore[return-value]

    def map(self, f: Callable[[A], B]) -> Rose[B]:
        children = self.children
        return RoseValue(
            lambda: f(self.root()),
            lambda: [child.map(f) for child in children()],
        )

    def on_rose(self, f: Callable[[A, List[Rose[A]]], Rose[A]]) -> Rose[A]:
        return f(self.root(), self.children())

    def __repr__(self) -> str:
        forced = self._root is not _UNSET
        return f"RoseValue({self._root!r})" if forced else "RoseValue(<unforced>)"


class RoseSuspended(Rose[A]):
    """A deferred rose: forcing runs *action* to obtain the real tree.

    *steps* are rose transformations applied, in order, to whatever the
    action produces.  Mapping or joining a suspended tree appends a step
    instead of wrapping the action, so a long chain of ``flat_map`` calls
    is forced one step at a time by :meth:`Rose.reduce`.
    """

    __slots__ = ("action", "steps")

    def __init__(
        self,
        action: Callable[[], Rose[Any]],
        steps: Tuple[Callable[[Rose[Any]], Rose[Any]], ...] = (),
    ) -> None:
        self.action = action
        self.steps = steps

    def then(self, step: Callable[[Rose[A]], Rose[B]]) -> "RoseSuspended[B]":
        return RoseSuspended(self.action, self.steps + (step,))

    def force(self) -> Rose[A]:
        """Run the action and as many steps as apply to a value node."""
        rose = self.action()
        for i, step in enumerate(self.steps):
            if isinstance(rose, RoseSuspended):
                return RoseSuspended(rose.action, rose.steps + self.steps[i:])
            rose = step(rose)
        return rose

    def map(self, f: Callable[[A], B]) -> Rose[B]:
        return self.then(lambda rose: rose.map(f))

    def on_rose(self, f: Callable[[A, List[Rose[A]]], Rose[A]]) -> Rose[A]:
        return self.then(lambda rose: rose.on_rose(f))

    def __repr__(self) -> str:
        return "RoseSuspended(<action>)"


# ---------------------------------------------------------------------------
# Free functions
# ---------------------------------------------------------------------------

def join_rose(rs: Rose[Rose[A]]) -> Rose[A]:
    """Flatten a tree of trees.

    The outer tree's shrinks come first, followed by the inner tree's own
    shrinks, so shrinking the generated input is preferred over shrinking
    whatever the property produced from it.  The result is suspended:
    nothing is evaluated until the tree is reduced, so listing a node's
    children never runs the test cases behind them.
    """
    if isinstance(rs, RoseSuspended):
        return rs.then(join_rose)
    return RoseSuspended(lambda: _join_value(rs))


def _join_value(rs: Rose[Rose[A]]) -> Rose[A]:
    if not isinstance(rs, RoseValue):
        raise InternalError(
            f"cannot join {type(rs).__name__}", code=ErrorCodes.UNREDUCED_ROSE
        )
    outer_children = rs.children
    inner = rs.root()
    if isinstance(inner, RoseSuspended):
        inner = inner.reduce()
    elif not isinstance(inner, RoseValue):
        raise InternalError(
            f"cannot join a tree of {type(inner).__name__}",
            code=ErrorCodes.UNREDUCED_ROSE,
        )
    return RoseValue(
        inner.root,
        lambda: [join_rose(child) for child in outer_children()] + inner.children(),
    )


def rose_sequence(roses: Sequence[Rose[A]]) -> Rose[List[A]]:
    """Combine trees into a tree of lists.

    The children shrink one position at a time, last position first.
    Positions are forced left to right when the result is reduced.
    """
    items = list(roses)
    return RoseSuspended(lambda: _sequence_nodes([rose.reduce() for rose in items]))


def _sequence_nodes(nodes: List[RoseValue[A]]) -> RoseValue[List[A]]:
    return RoseValue(
        lambda: [node.root() for node in nodes],
        lambda: [
            _replace_at(nodes, i, child)
            for i in reversed(range(len(nodes)))
            for child in nodes[i].children()
        ],
    )


def _replace_at(nodes: List[RoseValue[A]], i: int, child: Rose[A]) -> Rose[List[A]]:
    return RoseSuspended(
        lambda: _sequence_nodes(nodes[:i] + [child.reduce()] + nodes[i + 1:])
    )
