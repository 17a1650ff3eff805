from __future__ import annotations


class DevCliError(Exception):
    """Base error; `hint` is printed after the message by the top-level handler."""

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        super().__init__(message)
        self.hint = hint


class ConfigurationError(DevCliError):
    pass


class ResourceNotFoundError(DevCliError):
    pass


class PluginError(DevCliError):
    pass
