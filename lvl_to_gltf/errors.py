"""
Exceptions raised while converting a level to glTF.

Only fatal conditions are raised. Recoverable problems (an instance whose
geometry cannot be resolved, an unknown topology tag) are logged by the
translator and conversion continues.
"""


class ConversionError(ValueError):
    """Base class for every fatal conversion failure."""


class NoWorldsError(ConversionError):
    """The loaded levels contain no worlds, or no requested layer exists."""


class MissingGeometryError(ConversionError):
    """A geometry unit has no position data."""


class IndexRangeError(ConversionError):
    """An index value does not fit an unsigned 16-bit accessor."""


class LevelFormatError(ConversionError):
    """A level description file is malformed."""
