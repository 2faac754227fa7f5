"""Aggregation, budgeting, request and extraction stages."""

from .aggregator import FILE_BLOCK_TEMPLATE, aggregate, pair_contents
from .api_handler import ResponsesAPIHandler, ResponsesRequest
from .budget import BudgetGuard
from .result_builder import NO_TEXT_PLACEHOLDER, extract_output_text

__all__ = [
    "FILE_BLOCK_TEMPLATE",
    "NO_TEXT_PLACEHOLDER",
    "BudgetGuard",
    "ResponsesAPIHandler",
    "ResponsesRequest",
    "aggregate",
    "extract_output_text",
    "pair_contents",
]
