"""oxa: a tree-walking interpreter for a small dynamically typed scripting language."""

import logging

__version__ = "0.1.0"

logging.getLogger(__name__).addHandler(logging.NullHandler())
