"""Image slot board: up to five (image, description) slots with preview files.

Lifecycle:
    - `attach_image` normalizes first; on failure the slot keeps its previous
      image and no preview file is created.
    - A successful attach writes a transient preview file and deletes the
      preview it replaces.
    - `remove_image`, `clear` and `close` delete preview files. The board is a
      context manager so previews are released on early exit too.
"""

import base64
import logging
import os
import tempfile
from dataclasses import dataclass
from typing import List

from prompt_architect.core.prompt_types import EncodedImage, PromptInput
from prompt_architect.image.normalizer import ImageSource, normalize_image


logger = logging.getLogger(__name__)


MAX_SLOTS = 5


@dataclass
class ImageSlot:
    description: str = ""
    image: EncodedImage | None = None
    preview_path: str | None = None

    @property
    def has_content(self) -> bool:
        return bool(self.description.strip() or self.image)


class ImageSlotBoard:
    """Mutable slot set used by interactive clients before a generation call."""

    def __init__(self, max_slots: int = MAX_SLOTS, preview_dir: str | None = None):
        self.slots: List[ImageSlot] = [ImageSlot() for _ in range(max_slots)]
        self.preview_dir = preview_dir
        self._previews: set[str] = set()

    def __enter__(self) -> "ImageSlotBoard":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def _check(self, index: int) -> ImageSlot:
        if not 0 <= index < len(self.slots):
            raise IndexError(f"slot {index} out of range (0-{len(self.slots) - 1})")
        return self.slots[index]

    # ---------------------------------------------------------
    # preview files
    # ---------------------------------------------------------

    def _write_preview(self, image: EncodedImage) -> str:
        fd, path = tempfile.mkstemp(suffix=".jpg", prefix="preview_", dir=self.preview_dir)
        with os.fdopen(fd, "wb") as handle:
            handle.write(base64.b64decode(image.data))
        self._previews.add(path)
        return path

    def _release(self, path: str | None) -> None:
        if not path:
            return
        self._previews.discard(path)
        try:
            os.remove(path)
        except FileNotFoundError:
            pass
        except OSError:
            logger.exception("Failed to remove preview %s", path)

    @property
    def previews(self) -> set[str]:
        return set(self._previews)

    # ---------------------------------------------------------
    # slot operations
    # ---------------------------------------------------------

    def set_description(self, index: int, description: str) -> None:
        self._check(index).description = description

    def attach_image(self, index: int, source: ImageSource) -> EncodedImage:
        """Normalize `source` into slot `index`, replacing any previous image.

        Raises:
            ImageProcessingError: The source could not be normalized; the slot
                is left unchanged.
        """
        slot = self._check(index)
        image = normalize_image(source)

        previous = slot.preview_path
        preview = self._write_preview(image)
        slot.image, slot.preview_path = image, preview
        self._release(previous)
        return image

    def remove_image(self, index: int) -> None:
        slot = self._check(index)
        self._release(slot.preview_path)
        slot.image = None
        slot.preview_path = None

    def clear(self) -> None:
        for path in list(self._previews):
            self._release(path)
        self.slots = [ImageSlot() for _ in self.slots]

    def close(self) -> None:
        for path in list(self._previews):
            self._release(path)
        for slot in self.slots:
            slot.preview_path = None

    def prompt_inputs(self, count: int) -> List[PromptInput]:
        """Return `PromptInput` values for the first `count` slots."""
        return [
            PromptInput(
                index=i,
                description=slot.description,
                image_data=slot.image.data_url if slot.image else None,
            )
            for i, slot in enumerate(self.slots[:count])
        ]

    def has_content(self, count: int) -> bool:
        return any(slot.has_content for slot in self.slots[:count])
