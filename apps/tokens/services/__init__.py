"""
Token services layer.

Issuance, validation and management of IDENTITY and PRESET QR codes.
"""

from .exceptions import (
    TokenServiceError,
    TokenNotFoundError,
    TokenInactiveError,
    TokenKindMismatchError,
    TokenGenerationError,
    InvalidTokenFileError,
    TokenImageNotFoundError,
)

from .token_issuance import (
    IssuedToken,
    generate_token_value,
    issue_identity_token,
    issue_preset_token,
)

from .qr_rendering import (
    build_redeem_url,
    generate_qr_image,
    render_token_image,
    image_url,
    image_file_path,
)

from .bulk_issuance import (
    BulkIssuanceResult,
    BulkRowResult,
    read_csv_rows,
    issue_tokens_from_rows,
)

from .token_validation import (
    ResolvedIdentity,
    ResolvedPreset,
    ResolvedToken,
    extract_token_value,
    validate_scan,
)

from .token_management import (
    TokenDeletion,
    get_token,
    list_tokens,
    set_token_active,
    delete_token,
)


__all__ = [
    # Exceptions
    'TokenServiceError',
    'TokenNotFoundError',
    'TokenInactiveError',
    'TokenKindMismatchError',
    'TokenGenerationError',
    'InvalidTokenFileError',
    'TokenImageNotFoundError',

    # Issuance
    'IssuedToken',
    'generate_token_value',
    'issue_identity_token',
    'issue_preset_token',

    # Rendering
    'build_redeem_url',
    'generate_qr_image',
    'render_token_image',
    'image_url',
    'image_file_path',

    # Bulk issuance
    'BulkIssuanceResult',
    'BulkRowResult',
    'read_csv_rows',
    'issue_tokens_from_rows',

    # Validation
    'ResolvedIdentity',
    'ResolvedPreset',
    'ResolvedToken',
    'extract_token_value',
    'validate_scan',

    # Management
    'TokenDeletion',
    'get_token',
    'list_tokens',
    'set_token_active',
    'delete_token',
]
