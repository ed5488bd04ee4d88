"""
promo-datagen: Deterministic synthetic retail-promotion datasets.

Generates stores × products × weeks promotion records with an engagement
funnel, streams them in bounded chunks, and projects whether a target
store count is safe to hold in a single process.
"""

__version__ = "0.1.0"
