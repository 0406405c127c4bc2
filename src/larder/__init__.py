"""
Larder household grocery engine.

The package derives grocery lists from weekly meal plans, reconciles them with
previously generated entries, and drives the pantry-check and shopping workflow.
"""

__all__ = ["__version__"]

__version__ = "0.1.0"
