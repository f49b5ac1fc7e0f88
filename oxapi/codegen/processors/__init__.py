"""Processors package for OpenAPI extraction logic.

This package contains processor classes that turn the parameters, request
bodies and responses of OpenAPI operations into model descriptors.
"""

from oxapi.codegen.processors.parameter_processor import ParameterProcessor
from oxapi.codegen.processors.response_processor import ResponseProcessor

__all__ = [
    'ParameterProcessor',
    'ResponseProcessor',
]
