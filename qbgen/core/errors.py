"""Fatal error classes raised during a generation run."""


class GenerationError(Exception):
    """Base class for every error that aborts a generation run."""


class SchemaConnectionError(GenerationError):
    """Failure to obtain or use the schema connection."""
    def __init__(self, message: str, should_reconnect: bool = False):
        super().__init__(message)
        self.should_reconnect = should_reconnect


class IntrospectionError(GenerationError):
    """A single catalog query failed."""
    def __init__(self, category: str, cause: Exception):
        super().__init__(f"Failed to introspect {category}: {cause}")
        self.category = category


class MergeConflictInvariantViolation(GenerationError):
    """A spread namespace refers to a module that was never declared."""


class InvalidTargetFile(GenerationError):
    """A static support file contains a disallowed reference."""
    def __init__(self, path: str, message: str):
        super().__init__(f"{path}: {message}")
        self.path = path
