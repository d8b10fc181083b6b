"""Book cover generation: prompt shaping and persistence of generated images."""

from __future__ import annotations

import base64
import logging
import uuid

from world_in_ink.modules.llm.client import OpenAIClient
from world_in_ink.modules.upload.storage import Storage
from world_in_ink.utils.time import epoch_millis

logger = logging.getLogger(__name__)

MAX_PROMPT_CHARS = 1000
COVER_PROMPT_PREFIX = "A visually appealing book cover design for: "
COVER_PROMPT_SUFFIX = ". Professional book cover composition with typography."
DATA_URL_PREFIX = "data:image/png;base64,"


def optimize_prompt_for_cover(description: str) -> str:
    """Wrap the description in the cover template, cutting it so the prompt stays within 1000 chars."""
    cleaned = " ".join(description.split())
    room = MAX_PROMPT_CHARS - len(COVER_PROMPT_PREFIX) - len(COVER_PROMPT_SUFFIX)
    if len(cleaned) > room:
        cleaned = cleaned[: room - 3] + "..."
    return COVER_PROMPT_PREFIX + cleaned + COVER_PROMPT_SUFFIX


def persist_cover_image(storage: Storage, item: object, index: int) -> str | None:
    b64 = item.get("b64_json") if isinstance(item, dict) else None
    if not b64:
        logger.error("cover image %d has no b64_json data", index + 1)
        return None
    try:
        data = base64.b64decode(b64, validate=True)
    except ValueError:
        logger.error("cover image %d is not valid base64", index + 1)
        return None

    name = f"cover-{epoch_millis()}-{index}-{uuid.uuid4().hex[:7]}.png"
    try:
        return storage.save_bytes(data, name=name, content_type="image/png")
    except (OSError, ValueError):
        logger.exception("storing cover image %d failed, embedding it as a data url", index + 1)
        return DATA_URL_PREFIX + b64


def generate_cover_images(
    client: OpenAIClient,
    storage: Storage,
    *,
    description: str,
    model: str,
    n: int,
    size: str,
) -> list[str]:
    """URLs of the usable generated covers; images without a payload are dropped."""
    prompt = optimize_prompt_for_cover(description)
    logger.info("cover prompt: %d chars from a %d char description", len(prompt), len(description))
    items = client.generate_images(model=model, prompt=prompt, n=n, size=size)

    urls = [persist_cover_image(storage, item, index) for index, item in enumerate(items)]
    kept = [url for url in urls if url]
    logger.info("processed %d/%d cover images", len(kept), len(items))
    return kept


def all_stored(urls: list[str]) -> bool:
    return not any(url.startswith(DATA_URL_PREFIX) for url in urls)
