"""
Image settling before capture.

Every embedded image gets its own task; the join completes once each task has
resolved, whether the image loaded or failed. A failed image never blocks
capture. Cancelling settle_images() cancels all outstanding tasks.
"""

import asyncio
from typing import Any, List

from quire.contexts.capture.interfaces import CaptureStage
from quire.contexts.capture.logger import log_image_settle
from quire.utils.outcome import Outcome


async def settle_image(stage: CaptureStage, image: Any, index: int) -> Outcome[None]:
    """Wait for one image; load failures and errors both count as settled."""
    try:
        loaded = await stage.wait_for_image(image)
    except Exception as e:
        return Outcome.degraded("image_settle", f"Image {index} could not be awaited: {e}", error=e)

    if not loaded:
        return Outcome.degraded("image_settle", f"Image {index} failed to load")
    return Outcome.success(None)


async def settle_images(stage: CaptureStage, clone: Any) -> List[Outcome[None]]:
    """
    Wait for every image in the staged clone to load or fail.

    Returns:
        One Outcome per image, in document order
    """
    images = await stage.images(clone)
    if not images:
        return []

    outcomes = await asyncio.gather(
        *(settle_image(stage, image, index) for index, image in enumerate(images))
    )

    log_image_settle(len(outcomes), sum(1 for outcome in outcomes if not outcome.ok))
    return list(outcomes)
