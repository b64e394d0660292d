"""Adapters for external tools."""

from .jarsigner_adapter import JarsignerAdapter, create_jarsigner_adapter


__all__ = ["JarsignerAdapter", "create_jarsigner_adapter"]
