"""Module registry: type name -> factory."""

from .base import ModuleRegistry
from .builtin import register_builtin_modules, create_default_registry

__all__ = ["ModuleRegistry", "register_builtin_modules", "create_default_registry"]
