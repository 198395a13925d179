"""reactivity: fine-grained reactive state, derived values and scoped effects."""

from importlib.metadata import version as _version

__version__ = _version("reactivity")

from reactivity._runtime import (
    InvalidScopeError,
    Runtime,
    get_pending_count,
    get_runtime,
    reset_runtime,
    set_scheduler,
)
from reactivity._tracking import ReactionState, flush, is_tracking, untrack, untracked
from reactivity.state import State, create_state
from reactivity.derived import Derived, create_derived
from reactivity.effect import CancelToken, Effect, create_effect, create_effect_root
from reactivity.keyed import each
from reactivity.timers import interval, timeout
from reactivity.action import action, transaction
from reactivity.store import Store, derived_property, producer_of, reactive

__all__ = [
    "State",
    "create_state",
    "Derived",
    "create_derived",
    "Effect",
    "CancelToken",
    "create_effect",
    "create_effect_root",
    "each",
    "timeout",
    "interval",
    "flush",
    "untrack",
    "untracked",
    "is_tracking",
    "action",
    "transaction",
    "Store",
    "reactive",
    "derived_property",
    "producer_of",
    "ReactionState",
    "Runtime",
    "InvalidScopeError",
    "get_runtime",
    "reset_runtime",
    "set_scheduler",
    "get_pending_count",
]
