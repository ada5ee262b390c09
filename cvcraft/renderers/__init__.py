"""
Layout variant implementations.
Importing this package registers every variant with the template registry.
"""

from .html import ClassicTemplate, HTMLTemplate, ModernTemplate, ThemeRegistry, build_sections

__all__ = ['HTMLTemplate', 'ModernTemplate', 'ClassicTemplate', 'ThemeRegistry', 'build_sections']
