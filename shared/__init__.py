"""
Ordinal Shared Module
=====================

Configuration, logging and console infrastructure shared by the Ordinal
extractor, its CLI and its output renderers.
"""

from shared.config import OrdinalConfig, get_config

__all__ = ["OrdinalConfig", "get_config"]
