"""Error raised when route documentation cannot be built."""


class BuildError(ValueError):
    """A configuration or usage mistake found while routes are registered.

    Duplicate parameters, duplicate status codes, invalid parameter locations,
    unmodelable types and operations without a document all end up here. It is
    never caught inside the package so startup aborts loudly.
    """
