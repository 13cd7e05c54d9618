"""Kinship - family tree relationship resolution and link integrity.

Derives higher-order family relationships (siblings, grandparents,
uncles/aunts, in-laws, seniority) from a flat set of person records and
keeps parent/spouse links consistent when records change.
"""

__version__ = "0.1.0"

# Lazy imports to keep the CLI's startup light
def __getattr__(name: str):
    if name == "models":
        from kinship import models
        return models
    if name == "resolver":
        from kinship import resolver
        return resolver
    if name == "integrity":
        from kinship import integrity
        return integrity
    if name == "store":
        from kinship import store
        return store
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
