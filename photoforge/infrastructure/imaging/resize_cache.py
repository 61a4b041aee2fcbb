# infrastructure/imaging/resize_cache.py
import threading
from typing import Callable, Dict, Optional, Tuple

from PIL import Image

from photoforge.infrastructure.imaging.image_process import resize_stretch

Size = Tuple[int, int]
Resizer = Callable[[Image.Image, int, int], Image.Image]


class ResizeCache:
    """Resampled copies of one template's images, keyed by (size, variant).

    Entries live as long as the owning template and are never evicted; the
    set of sizes is bounded by the canvas widths actually requested. The lock
    only guards the dict: resampling happens with the lock released, so two
    renders missing the same key at once may both resize, and the first
    result stored wins.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._images: Dict[Tuple[Size, str], Image.Image] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._images)

    def get_resized(self, original: Image.Image, size: Size, variant: str = "default",
                    resizer: Optional[Resizer] = None) -> Image.Image:
        key = ((int(size[0]), int(size[1])), variant)
        with self._lock:
            img = self._images.get(key)
        if img is not None:
            return img

        img = (resizer or resize_stretch)(original, *key[0])

        with self._lock:
            return self._images.setdefault(key, img)
