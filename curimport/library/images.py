"""
Game image collection.

Stores game images the LaunchBox way:
``Images/<Platform>/<Role folder>/<Title>-NN.<ext>``.
"""

import logging
from enum import Enum
from io import BytesIO
from pathlib import Path
from typing import List, Tuple

from PIL import Image, UnidentifiedImageError

from curimport.curation.launchbox_game import generate_image_filename
from curimport.curation.models import GameMeta

logger = logging.getLogger(__name__)


class ImageRole(Enum):
    """Image roles and the folder they are stored in."""
    THUMBNAIL = "Box - Front"
    SCREENSHOT = "Screenshot - Gameplay"


class ImageValidationError(Exception):
    """Raised when image data cannot be decoded."""
    pass


class GameImageCollection:
    """
    Folder based image collection.

    Example:
        images = GameImageCollection(library_root)
        path = images.add_image(game, ImageRole.THUMBNAIL, data, 'png')
    """

    # LaunchBox numbers images from 01
    MAX_INDEX = 99

    def __init__(self, root: Path):
        """
        Initialize image collection.

        Args:
            root: Library root (images are stored under root/Images)
        """
        self.root = Path(root)
        self.images_dir = self.root / 'Images'

    def get_image_folder(self, platform: str, role: ImageRole) -> Path:
        """Folder holding images of a role for a platform."""
        platform_folder = generate_image_filename(platform or 'Unknown')
        return self.images_dir / platform_folder / role.value

    def find_images(self, game: GameMeta, role: ImageRole) -> List[Path]:
        """List existing images of a game for a role, in index order."""
        folder = self.get_image_folder(game.get('platform', ''), role)
        if not folder.is_dir():
            return []
        prefix = generate_image_filename(game.get('title', '')) + '-'
        return sorted(
            p for p in folder.iterdir()
            if p.is_file() and p.stem.startswith(prefix) and p.stem[len(prefix):].isdigit()
        )

    @staticmethod
    def validate_image(data: bytes) -> Tuple[int, int]:
        """
        Check that data decodes as an image.

        Args:
            data: Raw image bytes

        Returns:
            (width, height) of the image

        Raises:
            ImageValidationError: If Pillow cannot read the data
        """
        try:
            img = Image.open(BytesIO(data))
            img.verify()

            # Reopen to get dimensions (verify() invalidates the image)
            img = Image.open(BytesIO(data))
            return img.size
        except UnidentifiedImageError as e:
            raise ImageValidationError(f"Unrecognized image format: {e}")
        except Exception as e:
            raise ImageValidationError(f"Invalid image data: {e}")

    def add_image(
        self,
        game: GameMeta,
        role: ImageRole,
        data: bytes,
        extension: str
    ) -> Path:
        """
        Store an image for a game under the next free index.

        The file is written to a temporary name first and renamed into place.

        Args:
            game: Game record ('title' and 'platform' select the path)
            role: ImageRole of the image
            data: Raw image bytes
            extension: File extension without dot

        Returns:
            Path of the stored image

        Raises:
            OSError: If the image cannot be written
        """
        folder = self.get_image_folder(game.get('platform', ''), role)
        folder.mkdir(parents=True, exist_ok=True)

        title = game.get('title') or game.get('id', '')
        output_path = self._next_free_path(folder, title, extension.lower().lstrip('.'))

        temp_path = output_path.with_suffix(output_path.suffix + '.tmp')
        try:
            temp_path.write_bytes(data)
            temp_path.rename(output_path)
        except OSError:
            if temp_path.exists():
                temp_path.unlink()
            raise

        logger.debug(f"Stored {role.name.lower()} image: {output_path}")
        return output_path

    def remove_image(self, path: Path) -> None:
        """Delete a stored image (missing files are ignored)."""
        try:
            path.unlink()
            logger.debug(f"Removed image: {path}")
        except FileNotFoundError:
            pass

    def _next_free_path(self, folder: Path, title: str, extension: str) -> Path:
        """First '<title>-NN' name not used by any image in the folder."""
        used = {p.stem for p in folder.iterdir() if p.is_file()}
        for index in range(1, self.MAX_INDEX + 1):
            name = generate_image_filename(title, index)
            if name not in used:
                return folder / f"{name}.{extension}"
        raise OSError(f"No free image index left for '{title}' in {folder}")
