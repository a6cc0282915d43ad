"""dbbridge schema models: dialects and query options."""
from dbbridge.schema.dialect import ALL_DIALECTS, Dialect
from dbbridge.schema.options import QueryOptions, normalize_param_name

__all__ = [
    "ALL_DIALECTS",
    "Dialect",
    "QueryOptions",
    "normalize_param_name",
]
