"""
QR code rendering for issued tokens.

The QR payload is a redemption URL rather than the bare token value so a
phone camera opens the redeem page directly; the scanner extracts the value
back out of the URL (see ``token_validation.extract_token_value``).
"""

import logging
import os
import secrets

import qrcode
from django.conf import settings
from django.urls import reverse
from django.utils.text import slugify

from apps.tokens.models import Token, TokenKind

from .exceptions import TokenImageNotFoundError

logger = logging.getLogger(__name__)

QR_DIRECTORY = 'qr_codes'


def build_redeem_url(*, value: str, kind: str) -> str:
    """
    Build the URL encoded into a token's QR code.

    Example:
        build_redeem_url(value='a1B2c3', kind=TokenKind.PRESET)
        # 'https://scan.example.org/redeemQR/preset/a1B2c3'
    """
    base = settings.QR_REDEEM_BASE_URL.rstrip('/')
    if kind == TokenKind.PRESET:
        return f"{base}/redeemQR/preset/{value}"
    return f"{base}/redeemQR/{value}"


def generate_qr_image(payload: str, output_path=None):
    """
    Generate a QR code image for a payload.

    Returns the output path when one is given, otherwise the PIL image.
    Error correction level M (15% recovery) keeps printed cards readable
    after some wear.
    """
    qr = qrcode.QRCode(
        version=1,
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        box_size=10,
        border=4,
    )
    qr.add_data(payload)
    qr.make(fit=True)

    img = qr.make_image(fill_color="black", back_color="white")

    if output_path:
        img.save(output_path)
        return output_path

    return img


def render_token_image(*, token: Token) -> str:
    """
    Write the PNG for a token and store its path on the token.

    Files land in ``MEDIA_ROOT/qr_codes/<identity|preset>/<slug>_<6 digits>.png``.

    Returns:
        Path relative to MEDIA_ROOT
    """
    slug = slugify(token.display_name()) or 'qr'
    filename = f"{slug}_{secrets.randbelow(1_000_000):06d}.png"
    relative_path = f"{QR_DIRECTORY}/{token.kind.lower()}/{filename}"
    absolute_path = os.path.join(settings.MEDIA_ROOT, relative_path)

    os.makedirs(os.path.dirname(absolute_path), exist_ok=True)

    generate_qr_image(build_redeem_url(value=token.value, kind=token.kind), absolute_path)

    token.image_path = relative_path
    token.save(update_fields=['image_path', 'updated_at'])
    return relative_path


def delete_token_image(*, image_path: str) -> None:
    """Remove a rendered PNG. Missing files are ignored."""
    if not image_path:
        return
    absolute_path = os.path.join(settings.MEDIA_ROOT, image_path)
    try:
        os.remove(absolute_path)
    except FileNotFoundError:
        logger.info("QR image %s already removed", image_path)


def image_url(token: Token) -> str:
    """Operator-only URL streaming a token's rendered image, or an empty string."""
    if not token.image_path:
        return ''
    return reverse('tokens:token-image', kwargs={'value': token.value})


def image_file_path(*, token: Token) -> str:
    """
    Absolute path of a token's rendered PNG.

    Raises:
        TokenImageNotFoundError: If no image was rendered or the file is gone
    """
    if not token.image_path:
        raise TokenImageNotFoundError(f"QR code {token.value} has no rendered image")

    media_root = os.path.realpath(settings.MEDIA_ROOT)
    absolute_path = os.path.realpath(os.path.join(media_root, token.image_path))
    if os.path.commonpath([media_root, absolute_path]) != media_root or not os.path.isfile(absolute_path):
        raise TokenImageNotFoundError(f"Image for QR code {token.value} is missing")

    return absolute_path
