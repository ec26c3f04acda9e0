"""
Utilities package for shared helper functions.
"""

from utils.text import strip_html, truncate

__all__ = ['strip_html', 'truncate']
