"""Exception types raised by the tree engine and its readers."""


class IdentifierKindError(LookupError):
    """An identifier of one kind was used where another kind is required."""


class TreeFormatError(ValueError):
    """A persisted tree does not match the header/node grammar."""


class TrainingDataError(ValueError):
    """A training-data file is malformed or references unknown names."""
