"""Optional village extensions."""

from hamlet.extensions.base import VillageExtension
from hamlet.extensions.registry import ExtensionRegistry
from hamlet.extensions.environment import EnvironmentExtension

__all__ = [
    "VillageExtension",
    "ExtensionRegistry",
    "EnvironmentExtension",
]
