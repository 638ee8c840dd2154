"""
Compile backends for ndkharness.
"""

from .base import BuildMode, CompileBackend, CompileResult
from .cargo import CargoBackend

__all__ = ["BuildMode", "CompileBackend", "CompileResult", "CargoBackend"]
