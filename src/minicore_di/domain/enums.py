from enum import Enum


class Lifetime(str, Enum):
    """Defines the lifetime of a service instance.

    Attributes:
        SINGLETON: Single instance shared by the provider and every scope created from it.
        SCOPED: Single instance per scope (e.g., per HTTP request).
        TRANSIENT: New instance created on each resolution.
    """

    SINGLETON = "singleton"
    SCOPED = "scoped"
    TRANSIENT = "transient"

    def __str__(self) -> str:
        return self.value


class ImplementationKind(str, Enum):
    """How a registration satisfies its service type.

    Attributes:
        TYPE: A concrete class built through constructor injection.
        INSTANCE: A precomputed object returned as-is.
        FACTORY: A callable receiving the requesting provider.
    """

    TYPE = "type"
    INSTANCE = "instance"
    FACTORY = "factory"

    def __str__(self) -> str:
        return self.value
