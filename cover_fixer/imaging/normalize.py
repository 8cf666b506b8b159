import io

from PIL import Image, ImageOps

from .. import config
from ..exceptions import ClassifyError, NormalizeError
from .inspect import accept, probe


def normalize(data: bytes) -> bytes:
    """
    Re-encodes a cover so the player can show it.

    - downscale only, so both sides fit MAX_COVER_DIMENSION (aspect kept)
    - baseline (non-progressive) JPEG
    - no EXIF / ICC / comment blocks

    Raises NormalizeError on any failure, including output that still would
    not pass accept().
    """
    limit = config.MAX_COVER_DIMENSION
    try:
        with Image.open(io.BytesIO(data)) as im:
            im.load()
            # Bake the orientation into pixels since EXIF is stripped below
            img = ImageOps.exif_transpose(im)
            if img.mode != 'RGB':
                img = img.convert('RGB')
            img.thumbnail((limit, limit), Image.Resampling.LANCZOS)
            img.info.clear()

            out = io.BytesIO()
            img.save(
                out,
                format='JPEG',
                quality=config.JPEG_QUALITY,
                progressive=False,
                optimize=False,
            )
    except (OSError, ValueError, Image.DecompressionBombError) as e:
        raise NormalizeError(f"Cannot re-encode cover: {e}") from e

    result = out.getvalue()

    try:
        info = probe(result)
    except ClassifyError as e:
        raise NormalizeError(f"Re-encoded cover is unreadable: {e}") from e
    if not accept(info):
        raise NormalizeError(
            f"Re-encoded cover still not acceptable: {info.encoding.value} {info.width}x{info.height}"
        )
    return result
