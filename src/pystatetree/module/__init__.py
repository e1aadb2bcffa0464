"""Module definitions and the module tree."""

from pystatetree.module.definition import ActionDefinition, ModuleDefinition, StoreOptions
from pystatetree.module.module import Module
from pystatetree.module.tree import ModuleTree

__all__ = [
    "ActionDefinition",
    "Module",
    "ModuleDefinition",
    "ModuleTree",
    "StoreOptions",
]
