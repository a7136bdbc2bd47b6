"""Exception types shared across the package."""


class EduFinderError(Exception):
    """Base class for errors raised by edufinder."""


class GenerationError(EduFinderError):
    """The content provider failed or returned data that cannot be used."""


class PersistenceCorruption(EduFinderError):
    """Stored performance data could not be decoded."""


class IllegalTransition(EduFinderError):
    """A selection or step change that skips a required earlier choice."""
