"""Reactive observation layer.

Observable state containers and memoized getters on top of snarfx. The
store consumes it through :class:`ReactiveEngine`; nothing here knows
about modules, mutations or actions.
"""

from pystatetree.reactive.engine import ReactiveEngine, ReactiveRoot, Watch
from pystatetree.reactive.observe import StateDict, StateList, observe, to_plain, traverse

__all__ = [
    "ReactiveEngine",
    "ReactiveRoot",
    "StateDict",
    "StateList",
    "Watch",
    "observe",
    "to_plain",
    "traverse",
]
