"""annotate-callbacks - keep callback summaries in model source files.

Writes, refreshes, and removes a ``# == Callbacks ==`` comment block above
the class or module declaration of each model file, driven by a manifest
of callback records.
"""

__version__ = "0.1.0"
