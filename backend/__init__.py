"""
Backend package for Canvas Lite.
Contains the Flask app that forwards browser requests to the Canvas REST API.
"""

from .backend import app

__all__ = ['app']
