from typing import Iterable


class CrawlerError(Exception):
    """Base error for Pixel Crawler domain exceptions."""


class ConfigError(CrawlerError):
    """Raised when a configuration file or mapping cannot be applied."""


class GenerationError(CrawlerError):
    """Raised when no playable floor could be produced within the retry budget."""


class StateValidationError(CrawlerError):
    """Raised when a game state violates one of its invariants."""

    def __init__(self, problems: Iterable[str]) -> None:
        self.problems = list(problems)
        super().__init__("; ".join(self.problems) or "invalid game state")


class PersistenceError(CrawlerError):
    """Raised when the storage backend cannot read or write a record."""


class SaveFormatError(PersistenceError):
    """Raised when a stored record cannot be decoded or has the wrong format version."""
