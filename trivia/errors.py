# trivia/errors.py - Exceptions raised by the trivia engine


class TriviaError(Exception):
    """Base class for trivia engine errors"""


class UpstreamUnavailable(TriviaError):
    """The vehicle data provider could not be reached or returned garbage"""

    def __init__(self, message: str, page_number: int = None):
        super().__init__(message)
        self.page_number = page_number


class InsufficientCandidates(TriviaError):
    """Fewer distinct candidates than the round needs"""

    def __init__(self, expected: int, found: int):
        super().__init__(f"Expected {expected} distinct candidates, found {found}")
        self.expected = expected
        self.found = found


class RoundClosed(TriviaError):
    """A submission arrived after the deadline or after cancellation"""


class AcknowledgeFailure(TriviaError):
    """Replying to a player's submission failed"""


class RatingStoreError(TriviaError):
    """The statistics file could not be read or written"""
