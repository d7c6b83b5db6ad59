"""Shared utilities for the backend."""
from utils.parsing import (
    clean_string,
    dict_keys_to_snake,
    first_credit_score,
    names_to_camel,
    parse_currency,
    parse_percent,
    safe_number,
)

__all__ = [
    "clean_string",
    "dict_keys_to_snake",
    "first_credit_score",
    "names_to_camel",
    "parse_currency",
    "parse_percent",
    "safe_number",
]
