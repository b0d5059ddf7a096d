"""Storyline: per-client activity logs folded into natural-language user stories.

Submodules are imported directly (``storyline.api.main``, ``storyline.services``);
nothing is re-exported here to keep worker start-up free of the web stack.
"""

__version__ = "0.1.0"
