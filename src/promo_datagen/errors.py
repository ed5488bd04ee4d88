"""
Error types shared across generation, estimation and validation.

Only configuration problems are raised. Post-generation quality issues are
collected as findings (see validation.py) and capacity concerns are attached
to projections as advisories (see capacity/strategy.py).
"""


class ConfigurationError(Exception):
    """
    Raised when generation inputs are malformed.

    Covers invalid catalogs, empty choice lists, store counts that do not
    divide into equal groups, out-of-range store indices and bad config files.
    """

    pass
