"""dbbridge dialect translation: identifier quoting and date-format tokens."""
from dbbridge.translate.dates import date_format_expression, translate_date_format
from dbbridge.translate.identifiers import rewrite_identifiers, strip_identifier_quotes
from dbbridge.translate.translator import DialectTranslator

__all__ = [
    "DialectTranslator",
    "date_format_expression",
    "rewrite_identifiers",
    "strip_identifier_quotes",
    "translate_date_format",
]
