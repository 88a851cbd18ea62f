"""Outline and chapter drafting with retry, a bounded worker pool and offline fallback."""

from __future__ import annotations

import logging
import math
import queue
import re
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Protocol, TypeVar

from .errors import GenerationError
from .models import BookConfig, BookOutline, ChapterContent, ChapterOutline, ServiceResult

logger = logging.getLogger(__name__)

T = TypeVar("T")

RETRYABLE_CODES = frozenset({429, 500, 503})
RETRYABLE_STATUSES = frozenset({"UNAVAILABLE", "RESOURCE_EXHAUSTED"})
TRANSIENT_PHRASES = ("overloaded", "unavailable", "try again later")
DEFAULT_RETRIES = 2
DEFAULT_DELAY = 1.5
BACKOFF_FACTOR = 1.5
DEFAULT_CONCURRENCY = 3

_CODE_IN_MESSAGE = re.compile(r'"code":\s*(\d+)')


class TextClient(Protocol):
    """A text-generation backend.

    Implementations raise ``GenerationError`` (with ``code``/``status`` when
    known) or any other exception on failure.
    """

    def draft_outline(self, config: BookConfig) -> BookOutline: ...

    def draft_chapter(self, config: BookConfig, chapter: ChapterOutline) -> str: ...


def error_details(error: BaseException) -> tuple[int | None, str | None]:
    """Return ``(code, status)`` for an upstream failure.

    A numeric ``"code":NNN`` inside the message is used when the error
    carries no code.

    Example:
        >>> error_details(GenerationError("busy", code=503, status="UNAVAILABLE"))
        (503, 'UNAVAILABLE')
        >>> error_details(RuntimeError('{"error": {"code":429}}'))
        (429, None)
    """

    code = getattr(error, "code", None)
    status = getattr(error, "status", None)
    if not isinstance(code, int):
        match = _CODE_IN_MESSAGE.search(str(error))
        code = int(match.group(1)) if match else None
    return code, status if isinstance(status, str) else None


def is_transient_error(error: BaseException) -> bool:
    """Return True for rate-limit, overload and unavailability failures.

    Example:
        >>> is_transient_error(GenerationError("nope", code=400))
        False
        >>> is_transient_error(RuntimeError("The model is overloaded"))
        True
    """

    code, status = error_details(error)
    if code in RETRYABLE_CODES or status in RETRYABLE_STATUSES:
        return True
    message = str(error).lower()
    return any(phrase in message for phrase in TRANSIENT_PHRASES)


def fallback_warning(stage: str, error: BaseException) -> str:
    """Return the user-facing warning for a fallback after ``error``.

    Example:
        >>> fallback_warning("outline generation", GenerationError("x", code=503, status="UNAVAILABLE"))
        'Gemini outline generation service is temporarily unavailable (status UNAVAILABLE, code 503). Using offline mock data so you can keep iterating.'
    """

    code, status = error_details(error)
    parts = []
    if status:
        parts.append(f"status {status}")
    if code:
        parts.append(f"code {code}")
    detail = f" ({', '.join(parts)})" if parts else ""
    return (
        f"Gemini {stage} service is temporarily unavailable{detail}. "
        "Using offline mock data so you can keep iterating."
    )


def with_retry(
    operation: Callable[[], T],
    *,
    retries: int = DEFAULT_RETRIES,
    delay: float = DEFAULT_DELAY,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """Call ``operation``, retrying transient failures with growing delays.

    Args:
        operation: Zero-argument callable.
        retries: Extra attempts after the first.
        delay: Wait before the first retry; multiplied by 1.5 each time.
        sleep: Sleep function (injectable for tests).
    Returns:
        The operation's result.
    """

    attempt = 0
    while True:
        try:
            return operation()
        except Exception as exc:
            if attempt >= retries or not is_transient_error(exc):
                raise
            attempt += 1
            logger.warning(
                "Transient generation failure (%s); retry %d/%d in %.2fs",
                exc,
                attempt,
                retries,
                delay,
            )
            sleep(delay)
            delay *= BACKOFF_FACTOR


def mock_outline(config: BookConfig) -> BookOutline:
    """Return a placeholder outline with ``chapters_count`` chapters.

    Example:
        >>> mock_outline(BookConfig(title="T", topic="Tides", chapters_count=2)).chapters[1].title
        'Chapter 2: The Core of Tides'
    """

    return BookOutline(
        title=config.title,
        chapters=[
            ChapterOutline(
                index=index,
                title=f"Chapter {index}: The Core of {config.topic}",
                short_description=(
                    f"An introductory chapter exploring the fundamentals of {config.topic} "
                    f"for {config.target_audience}, written in a {config.tone} tone."
                ),
            )
            for index in range(1, config.chapters_count + 1)
        ],
    )


def mock_chapter_text(config: BookConfig, chapter: ChapterOutline) -> str:
    """Return placeholder markdown for one chapter, sized from ``words_per_chapter``."""

    intro = (
        f"## {chapter.title}\n\n"
        f'This chapter delves into the subject of "{chapter.title}" with a specific focus on '
        f"{config.topic}. It is written in a {config.tone} style, tailored for "
        f"{config.target_audience} and presented in {config.language}.\n\n"
    )
    paragraph = (
        f"This is a sample paragraph for the chapter about {chapter.title}. We are elaborating "
        f"on the key concepts and ideas. The tone is meant to be {config.tone}. Lorem ipsum "
        "dolor sit amet, consectetur adipiscing elit, sed do eiusmod tempor incididunt ut "
        "labore et dolore magna aliqua.\n\n"
    )
    return intro + paragraph * math.ceil(config.words_per_chapter / 100)


def mock_chapters(config: BookConfig, outline: BookOutline) -> List[ChapterContent]:
    """Return placeholder chapters for every outline entry."""

    return [
        ChapterContent(index=item.index, title=item.title, text=mock_chapter_text(config, item))
        for item in outline.chapters
    ]


def generate_outline(
    config: BookConfig,
    client: TextClient | None = None,
    *,
    sleep: Callable[[float], None] = time.sleep,
) -> ServiceResult[BookOutline]:
    """Draft an outline, falling back to placeholder data on failure.

    Args:
        config: Book configuration.
        client: Generation backend; None means no credentials.
        sleep: Sleep function used between retries.
    Returns:
        ServiceResult with the outline.
    """

    if client is None:
        logger.info("No generation client configured; using offline outline")
        return ServiceResult(
            data=mock_outline(config),
            used_fallback=True,
            warning="Gemini API key missing. Using offline mock outline instead.",
        )
    try:
        outline = with_retry(lambda: client.draft_outline(config), sleep=sleep)
    except Exception as exc:
        logger.warning("Outline generation failed; falling back to offline outline: %s", exc)
        return ServiceResult(
            data=mock_outline(config),
            used_fallback=True,
            warning=fallback_warning("outline generation", exc),
        )
    return ServiceResult(data=outline, used_fallback=False)


def generate_chapters(
    config: BookConfig,
    outline: BookOutline,
    client: TextClient | None = None,
    *,
    concurrency: int = DEFAULT_CONCURRENCY,
    sleep: Callable[[float], None] = time.sleep,
) -> ServiceResult[List[ChapterContent]]:
    """Draft every outlined chapter with at most ``concurrency`` requests in flight.

    Workers pull chapter stubs from a shared queue until it is empty; the
    results are sorted by chapter index. Any failure that survives the
    retries replaces the whole result with placeholder chapters.

    Args:
        config: Book configuration.
        outline: Outline whose chapters are drafted.
        client: Generation backend; None means no credentials.
        concurrency: Worker count upper bound.
        sleep: Sleep function used between retries.
    Returns:
        ServiceResult with chapters in index order.
    """

    if client is None:
        logger.info("No generation client configured; using offline chapters")
        return ServiceResult(
            data=mock_chapters(config, outline),
            used_fallback=True,
            warning="Gemini API key missing. Using offline mock chapters instead.",
        )
    try:
        chapters = _draft_with_pool(
            config=config, outline=outline, client=client, concurrency=concurrency, sleep=sleep
        )
    except Exception as exc:
        logger.warning("Chapter drafting failed; falling back to offline chapters: %s", exc)
        return ServiceResult(
            data=mock_chapters(config, outline),
            used_fallback=True,
            warning=fallback_warning("chapter drafting", exc),
        )
    return ServiceResult(data=chapters, used_fallback=False)


def _draft_with_pool(
    *,
    config: BookConfig,
    outline: BookOutline,
    client: TextClient,
    concurrency: int,
    sleep: Callable[[float], None],
) -> List[ChapterContent]:
    """Run the drafting workers and collect their chapters.

    Args:
        config: Book configuration.
        outline: Outline to draft.
        client: Generation backend.
        concurrency: Worker count upper bound.
        sleep: Sleep function used between retries.
    Returns:
        Chapters sorted by index.
    """

    pending: queue.Queue[ChapterOutline] = queue.Queue()
    for item in outline.chapters:
        pending.put(item)
    workers = max(1, min(concurrency, len(outline.chapters)))

    def worker() -> List[ChapterContent]:
        drafted: List[ChapterContent] = []
        while True:
            try:
                item = pending.get_nowait()
            except queue.Empty:
                return drafted
            text = with_retry(lambda: client.draft_chapter(config, item), sleep=sleep)
            drafted.append(ChapterContent(index=item.index, title=item.title, text=text))

    results: List[ChapterContent] = []
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="draft") as executor:
        futures = [executor.submit(worker) for _ in range(workers)]
        for future in futures:
            results.extend(future.result())
    return sorted(results, key=lambda chapter: chapter.index)
