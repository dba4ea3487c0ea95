"""Exception types shared across the exporter."""


class ExporterError(Exception):
    """Base class for everything the exporter raises on purpose."""


class ConfigError(ExporterError):
    """Bad or missing configuration detected at startup."""


class FetchError(ExporterError):
    """The stats endpoint could not be read."""


class DecodeFailed(ExporterError):
    """A stats payload was not a usable JSON document."""
