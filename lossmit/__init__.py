"""Loss-mitigation eligibility and calculation engine.

The calculators live in :mod:`lossmit.calculators`; guideline thresholds and
citations in :mod:`lossmit.presets`.  The installed distribution version is
exposed for the HTTP service and report headers."""

from importlib import metadata

__all__ = ["__version__"]

try:
    __version__ = metadata.version("lossmit")
except metadata.PackageNotFoundError:  # pragma: no cover - running from a checkout
    __version__ = "0.1.0"
