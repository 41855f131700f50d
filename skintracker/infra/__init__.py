from .text_library import (
    format_vars,
    get_phrases,
    list_keys,
    load_all_libs,
    pick,
    reload_libs,
)

__all__ = [
    "load_all_libs",
    "reload_libs",
    "get_phrases",
    "pick",
    "format_vars",
    "list_keys",
]
