"""Maintenance jobs over the whole gallery."""

import logging

from sqlalchemy.exc import SQLAlchemyError

from ai_gallery.db.store import MediaStore
from ai_gallery.models.batch import BatchResult
from ai_gallery.utils import clean_prompt_text

logger = logging.getLogger(__name__)


def update_all_prompts(store: MediaStore) -> BatchResult:
    """Re-run the prompt cleaner over every stored prompt.

    A prompt is rewritten only when cleaning changes it and leaves more
    than one character; everything else is skipped.

    Args:
        store: MediaStore to process

    Returns:
        BatchResult with processed, skipped and error counts
    """
    items = store.list_media()
    result = BatchResult(total=len(items))

    for index, item in enumerate(items, start=1):
        if not item.prompt:
            logger.debug("Item %s has no prompt, skipping", item.id)
            result.skipped += 1
            continue

        cleaned = clean_prompt_text(item.prompt)
        if cleaned == item.prompt or len(cleaned) <= 1:
            result.skipped += 1
            continue

        try:
            store.update_media(item.id, prompt=cleaned)
        except SQLAlchemyError as e:
            logger.error("Failed to update prompt for item %s: %s", item.id, e)
            result.errors += 1
            continue

        result.processed += 1
        logger.debug("Prompt updated for item %s (%d/%d)", item.id, index, result.total)

    logger.info("Prompt update complete: %s", result)
    return result
