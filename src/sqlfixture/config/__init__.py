from .settings import FixtureSettings  # noqa: I001
from .connection import (
    DEFAULTS,
    ConfigResolver,
    ConnectionKey,
    ConnectionProperties,
)

__all__ = [
    "FixtureSettings",
    "ConfigResolver",
    "ConnectionKey",
    "ConnectionProperties",
    "DEFAULTS",
]
