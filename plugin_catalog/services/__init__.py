from plugin_catalog.services import (
    catalog_service,
    clipboard_service,
    query_state_service,
    session_service,
)


__all__ = [
    "catalog_service",
    "clipboard_service",
    "query_state_service",
    "session_service",
]
