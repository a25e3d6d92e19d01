"""Domain models and DTOs."""

from plugin_catalog.domain.plugin import Author, PluginEntry, ResourceState


__all__ = [
    "Author",
    "PluginEntry",
    "ResourceState",
]
