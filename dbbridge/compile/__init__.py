"""dbbridge compilation layer: QueryOptions and builder calls -> SQL."""
from dbbridge.compile.base import CompiledFragment, Statement
from dbbridge.compile.conditions import ConditionCompiler
from dbbridge.compile.registry import BackendFactory
from dbbridge.compile.statements import StatementBuilder

__all__ = [
    "BackendFactory",
    "CompiledFragment",
    "ConditionCompiler",
    "Statement",
    "StatementBuilder",
]
