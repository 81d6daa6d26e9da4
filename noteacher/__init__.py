"""
NOTEacher course progress service.
"""

__version__ = "1.0.0"
