"""
Scaffolder — apply a declarative bootstrap recipe to a freshly
generated project.
"""

__version__ = "0.1.0"
