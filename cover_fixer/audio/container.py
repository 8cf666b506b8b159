import io
import logging
from pathlib import Path

from mutagen import MutagenError
from mutagen.flac import FLAC, Picture
from PIL import Image

from .. import config
from ..exceptions import ContainerError, NoCoverError, ReplaceError


class FlacContainer:
    """
    Extract / remove / import primitives for FLAC PICTURE blocks.

    Strategies:
      - extract: front cover (type 3) when present, else the first picture.
      - replace: the new block is fully built in memory before the file is
        touched, and removal + import go out in a single save.
    """

    def _open(self, path: Path) -> FLAC:
        try:
            return FLAC(str(path))
        except (MutagenError, OSError) as e:
            raise ContainerError(f"Cannot read {path}: {e}") from e

    def extract_picture(self, path: Path) -> bytes:
        audio = self._open(path)
        pictures = audio.pictures
        if not pictures:
            raise NoCoverError(f"No embedded image in {path}")

        for pic in pictures:
            if pic.type == config.FRONT_COVER_TYPE:
                return pic.data
        return pictures[0].data

    def remove_pictures(self, path: Path) -> None:
        audio = self._open(path)
        audio.clear_pictures()
        try:
            audio.save()
        except (MutagenError, OSError) as e:
            raise ReplaceError(f"Failed to remove pictures from {path}: {e}") from e

    def import_picture(self, path: Path, image_path: Path) -> None:
        picture = self._build_picture(image_path)
        audio = self._open(path)
        audio.add_picture(picture)
        try:
            audio.save()
        except (MutagenError, OSError) as e:
            raise ReplaceError(
                f"Failed to import picture into {path}: {e}",
                partial=not self.has_picture(path),
            ) from e

    def replace_picture(self, path: Path, image_path: Path) -> None:
        """Removes every embedded picture and imports `image_path` as the front cover."""
        try:
            picture = self._build_picture(image_path)
        except (OSError, ValueError) as e:
            # Nothing has been written yet
            raise ReplaceError(f"Cannot prepare new cover for {path}: {e}") from e

        try:
            audio = self._open(path)
        except ContainerError as e:
            raise ReplaceError(str(e)) from e

        audio.clear_pictures()
        audio.add_picture(picture)
        try:
            audio.save()
        except (MutagenError, OSError) as e:
            raise ReplaceError(
                f"Failed to write new cover into {path}: {e}",
                partial=not self.has_picture(path),
            ) from e

    def has_picture(self, path: Path) -> bool:
        try:
            return bool(FLAC(str(path)).pictures)
        except (MutagenError, OSError):
            logging.debug(f"Could not re-read {path} after failed write")
            return False

    def _build_picture(self, image_path: Path) -> Picture:
        data = Path(image_path).read_bytes()
        with Image.open(io.BytesIO(data)) as im:
            width, height = im.size
            depth = 8 * len(im.getbands())

        pic = Picture()
        pic.type = config.FRONT_COVER_TYPE
        pic.mime = config.JPEG_MIME
        pic.desc = ''
        pic.width = width
        pic.height = height
        pic.depth = depth
        pic.data = data
        return pic
