"""Bulk field writes against a publish-only CMS, resolved by URL path."""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from typing import Protocol
from urllib.parse import urlsplit

from seofix.services.cms_adapter import CMSAdapter
from seofix.services.errors import FixEngineError

logger = logging.getLogger(__name__)

DEFAULT_MAX_ITEMS = 50
DEFAULT_DELAY_SEC = 0.3


class BulkInstruction(Protocol):
    target_url: str
    field: str
    new_value: str


@dataclass
class BulkItemOutcome:
    target_url: str
    field: str
    success: bool
    error: str | None = None


@dataclass
class BulkApplyResult:
    domain: str
    results: list[BulkItemOutcome] = field(default_factory=list)
    dropped: int = 0

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def applied(self) -> int:
        return sum(1 for r in self.results if r.success)

    @property
    def failed(self) -> int:
        return self.total - self.applied

    @property
    def success(self) -> bool:
        return self.failed == 0


async def _apply_one(adapter: CMSAdapter, item: BulkInstruction) -> BulkItemOutcome:
    path = urlsplit(item.target_url).path or "/"
    try:
        entity = await adapter.locate_by_path(item.target_url)
        if entity is None:
            return BulkItemOutcome(
                item.target_url, item.field, False, f"No page or post found for {path}."
            )
        await adapter.apply_field(entity, item.field, item.new_value)
    except FixEngineError as e:
        return BulkItemOutcome(item.target_url, item.field, False, e.message)
    except Exception as e:
        logger.warning(
            "Unexpected error in bulk fix item",
            extra={"target_url": item.target_url, "field_name": item.field},
            exc_info=True,
        )
        return BulkItemOutcome(item.target_url, item.field, False, f"Unexpected error: {e}")
    return BulkItemOutcome(item.target_url, item.field, True)


async def bulk_apply(
    adapter: CMSAdapter,
    domain: str,
    instructions: Sequence[BulkInstruction],
    max_items: int = DEFAULT_MAX_ITEMS,
    delay_sec: float = DEFAULT_DELAY_SEC,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> BulkApplyResult:
    """
    Apply instructions one at a time, pausing delay_sec between items.

    Only the first max_items are processed; the rest are counted in dropped.
    A failing item is recorded and never stops the remaining ones.
    """
    batch = list(instructions[:max_items])
    result = BulkApplyResult(domain=domain, dropped=max(0, len(instructions) - max_items))
    if result.dropped:
        logger.warning(
            "Bulk fix request over the item cap; extra items dropped",
            extra={"domain": domain, "max_items": max_items, "dropped": result.dropped},
        )
    for index, item in enumerate(batch):
        if index:
            await sleep(delay_sec)
        outcome = await _apply_one(adapter, item)
        if not outcome.success:
            logger.info(
                "Bulk fix item failed",
                extra={"domain": domain, "target_url": item.target_url, "reason": outcome.error},
            )
        result.results.append(outcome)
    logger.info(
        "Bulk fix finished",
        extra={
            "domain": domain,
            "total": result.total,
            "applied": result.applied,
            "failed": result.failed,
            "dropped": result.dropped,
        },
    )
    return result
