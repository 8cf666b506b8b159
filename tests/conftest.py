import io
import struct

import pytest
from mutagen.flac import FLAC, Picture
from PIL import Image


def _streaminfo_flac() -> bytes:
    """Smallest FLAC stream mutagen will open: magic + one (last) STREAMINFO block."""
    packed = (44100 << 44) | ((2 - 1) << 41) | ((16 - 1) << 36)
    streaminfo = (
        struct.pack(">HH", 4096, 4096)
        + b"\x00\x00\x00" + b"\x00\x00\x00"
        + struct.pack(">Q", packed)
        + b"\x00" * 16
    )
    return b"fLaC" + bytes([0x80]) + len(streaminfo).to_bytes(3, "big") + streaminfo


def jpeg_bytes(width, height, progressive=False, color="red", **save_kwargs) -> bytes:
    buf = io.BytesIO()
    with Image.new("RGB", (width, height), color=color) as im:
        im.save(buf, format="JPEG", progressive=progressive, **save_kwargs)
    return buf.getvalue()


def png_bytes(width, height, mode="RGBA") -> bytes:
    buf = io.BytesIO()
    with Image.new(mode, (width, height)) as im:
        im.save(buf, format="PNG")
    return buf.getvalue()


def write_flac(path, covers=()):
    """Creates a FLAC file with the given pictures. `covers` holds bytes or (bytes, type) pairs."""
    path.write_bytes(_streaminfo_flac())
    if covers:
        audio = FLAC(str(path))
        for cover in covers:
            data, pic_type = cover if isinstance(cover, tuple) else (cover, 3)
            pic = Picture()
            pic.type = pic_type
            pic.mime = "image/jpeg"
            pic.data = data
            audio.add_picture(pic)
        audio.save()
    return path


def embedded_covers(path):
    return [p.data for p in FLAC(str(path)).pictures]


@pytest.fixture
def make_flac(tmp_path):
    def _make(name, *covers):
        p = tmp_path / name
        p.parent.mkdir(parents=True, exist_ok=True)
        return write_flac(p, covers)
    return _make
