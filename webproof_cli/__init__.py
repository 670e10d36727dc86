"""
Command-line interface for the WebProof SDK.
"""
from .main import app, main

__all__ = ["app", "main"]
