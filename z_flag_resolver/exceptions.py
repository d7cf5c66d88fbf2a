"""Custom exceptions for Z-Flag-Resolver."""


class FlagResolverError(Exception):
    """Base exception for all flag resolver errors."""


class ConfigurationError(FlagResolverError):
    """Raised when a descriptor or matcher is malformed or of an unknown kind."""


class RegistryNotInitializedError(ConfigurationError):
    """Raised when a default-priority project type is registered before seeding."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(
            f"Cannot register project type '{name}': the project type registry "
            "has not been seeded yet."
        )


class UnsafeProjectError(FlagResolverError):
    """Raised when an unsafe project type is about to be loaded from an untrusted directory."""

    def __init__(self, type_name: str, directory: str):
        self.type_name = type_name
        self.directory = directory
        super().__init__(
            f"Refuse to auto-load unsafe project type '{type_name}' from untrusted "
            f"directory {directory}. Add it to ZFLAGS_TRUSTED_DIRS to allow loading."
        )


class LoaderContractError(FlagResolverError):
    """Raised when a project type loader returns nothing."""


class ProjectFileError(FlagResolverError):
    """Raised when a project marker file cannot be parsed."""
