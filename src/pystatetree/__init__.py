"""pystatetree - Centralized, module-based, mutation-gated state container."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pystatetree")
except PackageNotFoundError:
    __version__ = "0+local"
from pystatetree._context import ActionContext, LocalContext
from pystatetree.config import StoreConfig
from pystatetree.events import ActionEvent, Command, MutationEvent
from pystatetree.exceptions import (
    ModuleNotRegisteredError,
    StateTreeError,
    StoreConfigError,
    StrictModeViolationError,
)
from pystatetree.helpers import (
    create_namespaced_helpers,
    map_actions,
    map_getters,
    map_mutations,
    map_state,
)
from pystatetree.module import ActionDefinition, ModuleDefinition, StoreOptions
from pystatetree.plugins import create_logger
from pystatetree.reactive import ReactiveEngine
from pystatetree.store import Store

__all__ = [
    "__version__",
    "ActionContext",
    "ActionDefinition",
    "ActionEvent",
    "Command",
    "LocalContext",
    "ModuleDefinition",
    "ModuleNotRegisteredError",
    "MutationEvent",
    "ReactiveEngine",
    "StateTreeError",
    "Store",
    "StoreConfig",
    "StoreConfigError",
    "StoreOptions",
    "StrictModeViolationError",
    "create_logger",
    "create_namespaced_helpers",
    "map_actions",
    "map_getters",
    "map_mutations",
    "map_state",
]
