class TreeStructureError(AssertionError):
    """A branch node's network disagrees with its child count.

    This is a construction bug, not a data problem, so it is never caught
    inside the library.
    """


class DecodeError(ValueError):
    """Persisted tree data could not be decoded."""
