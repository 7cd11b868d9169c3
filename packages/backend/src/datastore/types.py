"""Dependency handle types.

A downstream dependency is either ``NotConfigured`` (never initialised) or
``Connected`` to something that can be probed. Consumers branch on the two
cases explicitly instead of checking for a null handle.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, Union, runtime_checkable


@runtime_checkable
class Probe(Protocol):
    """Anything whose reachability can be checked.

    ``ping`` returns normally when the dependency is reachable and raises
    otherwise. It need not enforce a deadline itself.
    """

    async def ping(self) -> None: ...


@runtime_checkable
class ClosableProbe(Probe, Protocol):
    def close(self) -> None: ...


@dataclass(frozen=True)
class NotConfigured:
    """The dependency was never initialised."""


@dataclass(frozen=True)
class Connected:
    """The dependency was initialised; ``handle`` is probed for health."""

    handle: Probe


Dependency = Union[NotConfigured, Connected]


def close_dependency(dependency: Dependency) -> None:
    """Release the handle behind ``dependency``, if it holds one."""
    if isinstance(dependency, Connected) and isinstance(dependency.handle, ClosableProbe):
        dependency.handle.close()
