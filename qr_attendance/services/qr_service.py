"""QR code rendering for attendance payloads."""
from io import BytesIO

import qrcode
from qrcode.constants import ERROR_CORRECT_M

QR_BORDER = 4  # quiet zone, in modules
VIEWPORT_RATIO = 0.8


def qr_size_for_viewport(width: int, height: int, max_size: int) -> int:
    """
    Pick the QR size for a screen: 80% of its smaller side, capped.

    Args:
        width: Viewport width in pixels
        height: Viewport height in pixels
        max_size: Largest size allowed

    Returns:
        Size in pixels, at least 1
    """
    return max(1, min(int(min(width, height) * VIEWPORT_RATIO), max_size))


def render_qr_png(payload: str, size_px: int) -> bytes:
    """
    Render a payload as a PNG QR code close to the requested size.

    The box size is the largest whole number of pixels per module that keeps
    the image within size_px (never below 1).

    Raises:
        ValueError: If payload is empty or size_px is not positive
    """
    if not payload:
        raise ValueError("Payload cannot be empty")
    if size_px <= 0:
        raise ValueError("Size must be positive")

    qr = qrcode.QRCode(error_correction=ERROR_CORRECT_M, box_size=1, border=QR_BORDER)
    qr.add_data(payload)
    qr.make(fit=True)

    modules = qr.modules_count + 2 * QR_BORDER
    qr.box_size = max(1, size_px // modules)

    img = qr.make_image()
    buf = BytesIO()
    img.save(buf)
    return buf.getvalue()
