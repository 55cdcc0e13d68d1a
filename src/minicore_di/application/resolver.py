import inspect
from typing import Any, Callable, Dict, List, NamedTuple, get_overloads, get_type_hints

from minicore_di.application.generics import (
    collection_element_type,
    split_generic,
    substitute_typevars,
    unwrap_optional,
)
from minicore_di.domain import (
    IResolver,
    IServiceLookup,
    NoConstructorError,
    NoResolvableConstructorError,
    ResolutionContext,
    UnresolvedDependencyError,
)


class ConstructorParameter(NamedTuple):
    """One injectable constructor parameter.

    Attributes:
        name: Parameter name.
        kind: The `inspect.Parameter` kind.
        annotation: Evaluated type hint with TypeVars substituted, or None when missing.
        default: Default value, or `inspect.Parameter.empty`.
    """

    name: str
    kind: Any
    annotation: Any
    default: Any

    @property
    def has_default(self) -> bool:
        return self.default is not inspect.Parameter.empty


class DependencyResolver(IResolver):
    """Resolves dependencies using constructor introspection and type hints.

    Uses Python's inspect module to analyze constructor signatures and resolve
    each parameter from its type hint. `typing.overload` variants of `__init__`
    are treated as separate constructors; the one with the most parameters that
    can all be satisfied is used.
    """

    def create_instance(self, implementation_type: Any, lookup: IServiceLookup, context: ResolutionContext) -> Any:
        """Resolve all constructor dependencies and create instance.

        Args:
            implementation_type: The class (or closed generic alias) to instantiate.
            lookup: The engine to resolve parameters from.
            context: The ongoing resolution.

        Returns:
            Instance with all dependencies injected.

        Raises:
            NoConstructorError: If the class is abstract or a protocol.
            NoResolvableConstructorError: If no constructor variant can be satisfied.
            UnresolvedDependencyError: If a required parameter cannot be resolved.

        Example:
            >>> class UserService:
            ...     def __init__(self, db: DatabaseConnection, logger: Logger):
            ...         self.db = db
            ...         self.logger = logger
            >>>
            >>> resolver = DependencyResolver()
            >>> instance = resolver.create_instance(UserService, provider, ResolutionContext())
        """
        constructors = self.get_constructors(implementation_type)
        if not constructors:
            raise NoConstructorError(implementation_type)

        if len(constructors) == 1:
            parameters = constructors[0]
        else:
            parameters = self._select_constructor(implementation_type, constructors, lookup)

        args: List[Any] = []
        kwargs: Dict[str, Any] = {}
        for parameter in parameters:
            value = self._resolve_parameter(implementation_type, parameter, lookup, context)
            if parameter.kind == inspect.Parameter.POSITIONAL_ONLY:
                args.append(value)
            else:
                kwargs[parameter.name] = value

        return implementation_type(*args, **kwargs)

    def get_constructors(self, implementation_type: Any) -> List[List[ConstructorParameter]]:
        """Return the injectable parameters of every constructor variant.

        Returns an empty list for types that cannot be instantiated.
        """
        cls, typevars = split_generic(implementation_type)
        if not inspect.isclass(cls) or inspect.isabstract(cls) or getattr(cls, "_is_protocol", False):
            return []

        init = cls.__init__
        variants: List[Callable[..., Any]] = []
        if inspect.isfunction(init):
            variants = list(get_overloads(init))
        if not variants:
            variants = [init]

        return [self._describe(variant, typevars) for variant in variants]

    def _describe(self, function: Callable[..., Any], typevars: Dict[Any, Any]) -> List[ConstructorParameter]:
        signature = inspect.signature(function)
        type_hints = get_type_hints(function)

        parameters = []
        # The first parameter is the instance being initialised
        for param in list(signature.parameters.values())[1:]:
            # Skip *args and **kwargs parameters
            if param.kind in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD):
                continue

            annotation = type_hints.get(param.name)
            if annotation is not None:
                annotation = substitute_typevars(annotation, typevars)
            parameters.append(ConstructorParameter(param.name, param.kind, annotation, param.default))
        return parameters

    def _select_constructor(
        self,
        implementation_type: Any,
        constructors: List[List[ConstructorParameter]],
        lookup: IServiceLookup,
    ) -> List[ConstructorParameter]:
        candidates = [
            parameters
            for parameters in constructors
            if all(self._can_resolve(parameter, lookup) for parameter in parameters)
        ]
        if not candidates:
            raise NoResolvableConstructorError(implementation_type)
        # max() keeps the first declared variant on ties
        return max(candidates, key=len)

    def _can_resolve(self, parameter: ConstructorParameter, lookup: IServiceLookup) -> bool:
        if parameter.has_default:
            return True
        if parameter.annotation is None:
            return False
        if collection_element_type(parameter.annotation) is not None:
            return True
        return lookup.is_service(unwrap_optional(parameter.annotation))

    def _resolve_parameter(
        self,
        implementation_type: Any,
        parameter: ConstructorParameter,
        lookup: IServiceLookup,
        context: ResolutionContext,
    ) -> Any:
        if parameter.annotation is None:
            if parameter.has_default:
                return parameter.default
            raise UnresolvedDependencyError(None, parameter.name, implementation_type)

        # Collections always resolve, possibly to an empty list
        if collection_element_type(parameter.annotation) is not None:
            return lookup.resolve_dependency(parameter.annotation, context)

        service_type = unwrap_optional(parameter.annotation)
        value = lookup.resolve_dependency(service_type, context)
        if value is not None:
            return value
        if parameter.has_default:
            return parameter.default
        raise UnresolvedDependencyError(service_type, parameter.name, implementation_type)
