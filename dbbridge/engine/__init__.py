"""dbbridge execution layer: statement execution, results and the query log."""
from dbbridge.engine.executor import Executor
from dbbridge.engine.querylog import QueryLog
from dbbridge.engine.results import ResultCursor

__all__ = [
    "Executor",
    "QueryLog",
    "ResultCursor",
]
