class SheetSinkError(RuntimeError):
    """Raised by a sink when it cannot carry out a write instruction."""
