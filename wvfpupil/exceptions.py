"""Exception and warning types raised by the pupil function computation."""


class WavefrontError(Exception):
    """Base class for all wavefront computation errors."""

    pass


class ConfigurationError(WavefrontError, ValueError):
    """Invalid parameter bundle.

    Raised during validation, before any grid is computed, e.g. when:
    - the calculated pupil is larger than the measured pupil
    - more than 65 Zernike coefficients are supplied
    - SCE is active and the wavelength is not in its table
    """

    pass


class PrecisionWarning(UserWarning):
    """Input was reduced to something the computation can handle.

    Issued when a multi-valued wavelength is supplied; only the first
    entry is used.
    """

    pass
