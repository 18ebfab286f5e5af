"""Parsing helpers shared by the runtime."""

from form_builder.utils.date_parsing import parse_date, parse_iso_date, whole_years_between
from form_builder.utils.number_parsing import format_number, parse_leading_float

__all__ = [
    "parse_date",
    "parse_iso_date",
    "whole_years_between",
    "format_number",
    "parse_leading_float",
]
