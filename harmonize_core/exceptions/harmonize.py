"""Exceptions raised by the harmonization workflow."""


class UnsupportedSensorError(Exception):
    """The sensor identifier matches none of the supported sensor families."""


class DimensionMismatchError(Exception):
    """A coefficient vector does not match the number of bands it is applied to."""


class EmptyGroupError(Exception):
    """A temporal group selected for compositing has no members."""


class ReflectanceOverflowError(Exception):
    """A harmonized value does not fit the signed 16-bit digital-number range."""
