import io
import logging

from PIL import Image, UnidentifiedImageError

from .. import config
from ..exceptions import ClassifyError
from ..models import CoverInfo, Encoding

UNKNOWN_COVER = CoverInfo(Encoding.UNKNOWN, 0, 0)


def probe(data: bytes) -> CoverInfo:
    """
    Classifies cover bytes. Raises ClassifyError if Pillow cannot read them.

    Only JPEG can be baseline; any other format is reported as unknown so
    it gets re-encoded.
    """
    try:
        with Image.open(io.BytesIO(data)) as im:
            width, height = im.size
            fmt = im.format
            info = dict(im.info)
    except (UnidentifiedImageError, OSError, ValueError, Image.DecompressionBombError) as e:
        raise ClassifyError(f"Cannot identify cover image: {e}") from e

    if fmt != 'JPEG':
        return CoverInfo(Encoding.UNKNOWN, width, height)

    # Pillow sets both keys for SOF2 (progressive) frames
    if info.get('progressive') or info.get('progression'):
        return CoverInfo(Encoding.PROGRESSIVE, width, height)
    return CoverInfo(Encoding.BASELINE, width, height)


def inspect(data: bytes) -> CoverInfo:
    """Like probe(), but never raises: unreadable covers become UNKNOWN 0x0."""
    try:
        return probe(data)
    except ClassifyError as e:
        logging.warning(str(e))
        return UNKNOWN_COVER


def accept(info: CoverInfo) -> bool:
    """True when the player can display the cover as-is."""
    return (
        info.encoding == Encoding.BASELINE
        and info.width <= config.MAX_COVER_DIMENSION
        and info.height <= config.MAX_COVER_DIMENSION
    )
