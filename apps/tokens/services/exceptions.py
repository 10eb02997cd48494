"""
Domain-specific exceptions for token issuance and validation.
"""


def _with_article(kind):
    kind = str(kind)
    return f"an {kind}" if kind[:1] in 'AEIOU' else f"a {kind}"


class TokenServiceError(Exception):
    """Base exception for all token service errors."""
    code = 'token_error'


class TokenNotFoundError(TokenServiceError):
    """Raised when a scanned value does not match any token."""
    code = 'token_not_found'


class TokenInactiveError(TokenServiceError):
    """Raised when a token has been soft-disabled."""
    code = 'token_inactive'


class TokenKindMismatchError(TokenServiceError):
    """Raised when a PRESET code is scanned where an IDENTITY code was expected, or vice versa."""
    code = 'token_kind_mismatch'

    def __init__(self, expected, actual):
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Expected {_with_article(expected)} code but scanned {_with_article(actual)} code."
        )


class TokenGenerationError(TokenServiceError):
    """Raised when a unique token value could not be generated."""
    code = 'token_generation_failed'


class InvalidTokenFileError(TokenServiceError):
    """Raised when a bulk issuance file cannot be read."""
    code = 'invalid_file'


class TokenImageNotFoundError(TokenServiceError):
    """Raised when a token has no rendered image on disk."""
    code = 'image_not_found'
