"""
CLI para tokens SAS do dispositivo.
"""

from .token_cli import main

__all__ = ["main"]
