# infrastructure/template_loader.py
import os
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict

import aiofiles

from photoforge.config.logger import get_logger
from photoforge.domain.errors import PhotoforgeError
from photoforge.domain.frame_template import parse_frame_template
from photoforge.domain.template import parse_template
from photoforge.infrastructure.assets import AssetSource

logger = get_logger(__name__)

Parser = Callable[[str, bytes, AssetSource], Awaitable[Any]]

# template kind -> (sub directory, parser)
KINDS: Dict[str, Parser] = {
    "generic": parse_template,
    "qr": parse_template,
    "fb": parse_frame_template,
}


async def load_templates(assets: AssetSource, directory: str, kind: str = "generic") -> Dict[str, Any]:
    """Parse every `*.yaml` under `directory`, keyed by file stem.

    A template that fails to load is logged and left out; the rest are
    still registered.
    """
    if kind not in KINDS:
        raise ValueError(f"unknown template kind {kind!r}")
    parse = KINDS[kind]

    templates: Dict[str, Any] = {}
    if not os.path.isdir(directory):
        logger.warning(f"{kind} template directory {directory} does not exist")
        return templates

    for path in sorted(Path(directory).glob("*.yaml")):
        name = path.stem
        try:
            async with aiofiles.open(path, "rb") as f:
                raw = await f.read()
            templates[name] = await parse(name, raw, assets)
        except (PhotoforgeError, OSError) as e:
            logger.error(f'load {kind} template "{path}" failed: {e}')
            continue
        logger.info(f'load {kind} template "{path}"')

    logger.info(f"{len(templates)} {kind} templates loaded from {directory}")
    return templates
