"""General cube-shape exceptions."""


class DimensionNotAvailable(Exception):
    """A dimension with the specified name does not exist."""


class DimensionAmbiguous(Exception):
    """Dimension of type ``bands`` is not available or is ambiguous."""


class BandNotAvailable(Exception):
    """A band with the specified label does not exist in the bands dimension."""


class BandExists(Exception):
    """A band with the specified target name exists."""
