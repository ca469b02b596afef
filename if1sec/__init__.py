"""if1sec — munin interface traffic plugin with 1-second resolution.

The plugin is symlinked once per interface (``if1sec_eth0`` …). Each verb
is a handler registered in VERBS; importing if1sec.plugin populates it.
"""

from typing import Callable

__version__ = "0.3.0"

# munin passes no argument at all when it wants values.
DEFAULT_VERB = "fetch"

VERBS: dict[str, Callable] = {}

# Short aliases → canonical verb name
ALIASES: dict[str, str] = {
    "": DEFAULT_VERB,
}


def register(name: str, *, takes_args: bool = False) -> Callable[[Callable], Callable]:
    """Decorator that adds a verb handler to the global registry.

    Verbs without ``takes_args`` reject any further command line argument.
    """
    def wrap(func: Callable) -> Callable:
        func.takes_args = takes_args
        VERBS[name] = func
        return func
    return wrap


def resolve(name: str) -> str:
    """Resolve a verb name, supporting aliases."""
    return ALIASES.get(name, name)
