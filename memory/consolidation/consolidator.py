"""Adjacent system-event consolidation."""

from __future__ import annotations

import logging

from memory.types.event import Category, Event

logger = logging.getLogger("dv.memory.consolidation")


class Consolidator:
    """Merges pairs of adjacent, identical system events in a single pass.

    The scan is one-pass and pairwise: ``[a, a, a]`` becomes
    ``[a (x2), a]``. Events produced by a merge are marked ``consolidated`` and
    never merged again, so a second run over the output is a no-op.
    """

    suffix_template = " (×{count})"

    @staticmethod
    def _mergeable(event: Event) -> bool:
        return event.category == Category.SYSTEM and not event.metadata.consolidated

    def merge(self, first: Event, second: Event) -> Event:
        count = 2
        metadata = first.metadata.model_copy(update={"consolidated": True, "occurrences": count})
        return first.model_copy(
            update={
                "content": f"{first.content}{self.suffix_template.format(count=count)}",
                "metadata": metadata,
            }
        )

    def run(self, events: list[Event]) -> tuple[list[Event], int]:
        """Return the consolidated log and the number of merges performed."""
        consolidated: list[Event] = []
        merges = 0
        idx = 0
        while idx < len(events):
            current = events[idx]
            if idx + 1 < len(events):
                following = events[idx + 1]
                if (
                    self._mergeable(current)
                    and self._mergeable(following)
                    and following.action == current.action
                ):
                    consolidated.append(self.merge(current, following))
                    merges += 1
                    idx += 2
                    continue
            consolidated.append(current)
            idx += 1
        if merges:
            logger.debug("Consolidated %d adjacent system event pairs", merges)
        return consolidated, merges
