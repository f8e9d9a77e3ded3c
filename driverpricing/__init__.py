"""Fantasy driver pricing: input records, derived metrics, abilities and a pricing model."""

__version__ = "0.1.0"
__all__ = ["__version__"]