"""
Dependency Lens

A tool reporting declared dependencies whose latest published version falls
outside the declared range, and for how long.
"""

__version__ = "0.1.0"
__author__ = "Imranur Rahman"

from .cli import main

__all__ = ["main"]
