"""Bugcheck-specific post-processing."""

from bugcheck_analyzer.postprocess.base import BasePostProcessor, CommandSpec, FunctionPostProcessor
from bugcheck_analyzer.postprocess.registry import (
    PostProcessorRegistry,
    apply_post_processing,
    load_default_registry,
    load_post_processor,
)

__all__ = [
    "BasePostProcessor",
    "CommandSpec",
    "FunctionPostProcessor",
    "PostProcessorRegistry",
    "apply_post_processing",
    "load_default_registry",
    "load_post_processor",
]
