"""Application layer - Generic type inspection helpers.

Open generic registrations bind an unsubscripted `typing.Generic` class (e.g. `Handler`)
to an unsubscripted implementation (e.g. `DefaultHandler`). Requests for a closed
alias such as `Handler[Order]` are satisfied by subscripting the implementation with
the same arguments.
"""

import collections.abc
import inspect
from typing import Any, Dict, Mapping, Optional, Tuple, TypeVar, Union, get_args, get_origin

from minicore_di.domain import is_generic_definition

_COLLECTION_ORIGINS = (
    list,
    collections.abc.Iterable,
    collections.abc.Collection,
    collections.abc.Sequence,
)


def collection_element_type(service_type: Any) -> Optional[Any]:
    """Return `T` when the type asks for every registration of `T`, else None.

    Example:
        >>> collection_element_type(List[Plugin])
        <class 'Plugin'>
    """
    if get_origin(service_type) in _COLLECTION_ORIGINS:
        arguments = get_args(service_type)
        if len(arguments) == 1:
            return arguments[0]
    return None


def contains_typevar(value: Any) -> bool:
    if isinstance(value, TypeVar):
        return True
    return any(isinstance(parameter, TypeVar) for parameter in getattr(value, "__parameters__", ()))


def is_closed_generic(service_type: Any) -> bool:
    """Return whether the type is a user generic with every argument supplied."""
    origin = get_origin(service_type)
    return (
        origin is not None
        and is_generic_definition(origin)
        and bool(get_args(service_type))
        and not contains_typevar(service_type)
    )


def unwrap_optional(annotation: Any) -> Any:
    """Return `X` for `Optional[X]`, otherwise the annotation unchanged."""
    if get_origin(annotation) is Union:
        arguments = [argument for argument in get_args(annotation) if argument is not type(None)]
        if len(arguments) == 1:
            return arguments[0]
    return annotation


def substitute_typevars(annotation: Any, mapping: Mapping[Any, Any]) -> Any:
    """Replace TypeVars in an annotation using the given mapping."""
    if not mapping:
        return annotation
    if isinstance(annotation, TypeVar):
        return mapping.get(annotation, annotation)
    if get_origin(annotation) is None:
        return annotation
    parameters = getattr(annotation, "__parameters__", ())
    if not parameters:
        return annotation
    return annotation[tuple(mapping.get(parameter, parameter) for parameter in parameters)]


def split_generic(implementation_type: Any) -> Tuple[Any, Dict[Any, Any]]:
    """Split a closed alias into its class and the TypeVar mapping it was closed with."""
    origin = get_origin(implementation_type)
    if origin is None:
        return implementation_type, {}
    return origin, dict(zip(getattr(origin, "__parameters__", ()), get_args(implementation_type)))


def close_generic(definition: Any, arguments: Tuple[Any, ...]) -> Optional[Any]:
    """Subscript a generic definition, returning None when the arity does not match."""
    try:
        return definition[arguments]
    except TypeError:
        return None


def _generic_base_arguments(cls: Any, mapping: Mapping[Any, Any], target: Any) -> Optional[Tuple[Any, ...]]:
    # __orig_bases__ is looked up on the class itself; inherited values describe the parent.
    for base in cls.__dict__.get("__orig_bases__", cls.__bases__):
        origin = get_origin(base) or base
        arguments = tuple(substitute_typevars(argument, mapping) for argument in get_args(base))
        if origin is target:
            return arguments
        if inspect.isclass(origin) and origin is not object:
            parameters = getattr(origin, "__parameters__", ())
            found = _generic_base_arguments(origin, dict(zip(parameters, arguments)), target)
            if found is not None:
                return found
    return None


def is_assignable(closed_service: Any, closed_implementation: Any) -> bool:
    """Return whether a closed implementation derives from the closed service type.

    Example:
        >>> class DefaultHandler(Handler[T]): ...
        >>> is_assignable(Handler[Order], DefaultHandler[Order])
        True
        >>> is_assignable(Handler[Order], DefaultHandler[Invoice])
        False
    """
    service_origin = get_origin(closed_service)
    service_arguments = get_args(closed_service)
    implementation_origin, mapping = split_generic(closed_implementation)

    if implementation_origin is service_origin:
        return get_args(closed_implementation) == service_arguments

    return _generic_base_arguments(implementation_origin, mapping, service_origin) == service_arguments
