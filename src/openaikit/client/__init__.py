"""
Client module - the OpenAIKit entry point.
"""

from openaikit.client.core import OpenAIKit

__all__ = ["OpenAIKit"]
