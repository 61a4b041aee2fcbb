# domain/binder.py
from typing import List

from photoforge.config.logger import get_logger
from photoforge.domain.plugins.base import BindValues, Plugin

logger = get_logger(__name__)


async def bind_plugins(plugins: List[Plugin], values: BindValues) -> List[Plugin]:
    """Render-ready copy of `plugins` for one request.

    Plugins are bound one after another in declared order; the first failure
    aborts the whole bind. The template's own instances are never modified.
    """
    bound = []
    for i, p in enumerate(plugins):
        if p.binding:
            logger.debug(f"bind plugin #{i} ({p.type}) binding={p.binding}")
        bound.append(await p.bind(values))
    return bound
