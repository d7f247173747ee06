class TickPrintError(Exception):
    pass

class ConfigError(TickPrintError):
    pass

class LifecycleError(TickPrintError):
    """Illegal runtime phase transition (e.g. starting a ticker twice)."""


class FatalError(TickPrintError):
    """Non-recoverable failure requiring supervised shutdown."""
