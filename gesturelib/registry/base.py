"""
Registry mapping module type names to factories.

Provides explicit, thread-safe registration with:
- Decorator and explicit registration patterns
- Alias support (several names for one module)
- Family tags for filtering (pre_processing, classifier, ...)
- Config validation against a module's ``init`` signature
"""

from typing import Any, Callable, Dict, List, Optional
import inspect
import logging
import threading

from ..core.base import Module

ModuleFactory = Callable[[], Module]


class ModuleRegistry:
    """
    Name -> zero-argument factory table used to rebuild stages from settings.

    A registry is an ordinary object: create one, register modules into it
    (``register_builtin_modules`` does this for the built-ins) and hand it
    to whatever needs to construct stages by name.

    Usage:
        registry = ModuleRegistry('stages')

        # Decorator registration
        @registry.register_module('MyFilter', aliases=['my_filter'])
        class MyFilter(PreProcessing):
            ...

        # Explicit registration
        registry.register('OtherFilter', OtherFilter)

        # Construction (all equivalent)
        module = registry.create_instance_from_string('MyFilter')
        module = registry.create_instance_from_string('my_filter')
    """

    def __init__(self, name: str = "modules"):
        self._name = name
        self._registry: Dict[str, ModuleFactory] = {}
        self._aliases: Dict[str, str] = {}
        self._metadata: Dict[str, Dict[str, Any]] = {}
        self._lock = threading.RLock()
        self._logger = logging.getLogger(f'gesturelib.registry.{name}')

    @property
    def name(self) -> str:
        return self._name

    def register_module(
        self,
        name: str,
        aliases: Optional[List[str]] = None,
        description: str = "",
        tags: Optional[List[str]] = None
    ) -> Callable[[type], type]:
        """
        Decorator for module registration.

        Args:
            name: Primary registration name (normally the class's MODULE_TYPE)
            aliases: Alternative names
            description: Human-readable description
            tags: Searchable tags; the class's FAMILY is always added

        Returns:
            Decorator function
        """
        def decorator(cls: type) -> type:
            self.register(
                name=name,
                factory=cls,
                aliases=aliases,
                description=description,
                tags=tags
            )
            return cls
        return decorator

    def register(
        self,
        name: str,
        factory: ModuleFactory,
        aliases: Optional[List[str]] = None,
        description: str = "",
        tags: Optional[List[str]] = None
    ) -> None:
        """
        Explicitly register a factory.

        Args:
            name: Primary registration name
            factory: Zero-argument callable returning a new module (a class
                with a default constructor is the usual choice)
            aliases: Alternative names
            description: Human-readable description
            tags: Searchable tags
        """
        tags = list(tags or [])
        family = getattr(factory, 'FAMILY', None)
        if family and family not in tags:
            tags.append(family)

        with self._lock:
            if name in self._registry:
                self._logger.warning(f"Overwriting '{name}' in {self._name} registry")

            self._registry[name] = factory
            self._metadata[name] = {
                'description': description or (factory.__doc__ or "").strip(),
                'tags': tags,
                'module': getattr(factory, '__module__', None),
                'factory_name': getattr(factory, '__name__', repr(factory)),
            }

            if aliases:
                for alias in aliases:
                    if alias in self._aliases and self._aliases[alias] != name:
                        self._logger.warning(
                            f"Alias '{alias}' remapped: {self._aliases[alias]} -> {name}"
                        )
                    self._aliases[alias] = name

            self._logger.debug(f"Registered '{name}' -> {self._metadata[name]['factory_name']}")

    def _resolve(self, name: str) -> Optional[str]:
        if name in self._registry:
            return name
        return self._aliases.get(name)

    def get(self, name: str, strict: bool = True) -> Optional[ModuleFactory]:
        """
        Retrieve a factory by name or alias.

        Raises:
            KeyError: If not found and strict=True
        """
        with self._lock:
            canonical = self._resolve(name)
            if canonical is not None:
                return self._registry[canonical]

        if strict:
            raise KeyError(
                f"'{name}' not found in {self._name} registry.\n"
                f"Available: {self.list_available()}\n"
                f"Aliases: {sorted(self._aliases.keys())}"
            )
        return None

    def create_instance_from_string(self, name: str) -> Optional[Module]:
        """New default-constructed module for ``name``, or None if unregistered."""
        factory = self.get(name, strict=False)
        if factory is None:
            self._logger.debug(f"No module registered as '{name}'")
            return None
        return factory()

    def list_available(self, tags: Optional[List[str]] = None) -> List[str]:
        """
        List registered module names.

        Args:
            tags: If provided, filter by tags (AND logic)
        """
        with self._lock:
            if not tags:
                return sorted(self._registry.keys())

            result = []
            for name, meta in self._metadata.items():
                if all(t in meta.get('tags', []) for t in tags):
                    result.append(name)
            return sorted(result)

    def get_metadata(self, name: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            canonical = self._resolve(name)
            return None if canonical is None else self._metadata.get(canonical)

    def get_signature(self, name: str) -> Optional[inspect.Signature]:
        """Signature of the module's ``init`` method."""
        factory = self.get(name, strict=False)
        init = getattr(factory, 'init', None)
        if init is None:
            return None
        return inspect.signature(inspect.unwrap(init))

    def validate_config(self, name: str, params: Dict[str, Any]) -> List[str]:
        """
        Validate ``params`` against the module's ``init`` signature.

        Returns:
            List of validation errors (empty if valid)
        """
        if name not in self:
            return [f"Module '{name}' not found"]
        sig = self.get_signature(name)
        if sig is None:
            # Configured by training only
            return [f"Unknown parameter: '{key}'" for key in params]

        errors = []
        accepted = {k: p for k, p in sig.parameters.items() if k != 'self'}

        takes_kwargs = any(p.kind == inspect.Parameter.VAR_KEYWORD for p in accepted.values())
        for key in params:
            if key not in accepted and not takes_kwargs:
                errors.append(f"Unknown parameter: '{key}'")

        for param_name, param in accepted.items():
            if param.default == inspect.Parameter.empty and param_name not in params:
                if param.kind not in (
                    inspect.Parameter.VAR_POSITIONAL,
                    inspect.Parameter.VAR_KEYWORD
                ):
                    errors.append(f"Missing required parameter: '{param_name}'")

        return errors

    def __contains__(self, name: str) -> bool:
        with self._lock:
            return self._resolve(name) is not None

    def __len__(self) -> int:
        return len(self._registry)

    def __repr__(self) -> str:
        return f"ModuleRegistry('{self._name}', {len(self._registry)} modules)"
