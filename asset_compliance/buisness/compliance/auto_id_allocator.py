"""
Auto ID Allocator
Allocates human-readable identifiers (PFD001, HeightsSafety014, ...) that are
unique within a group.

The allocator is stateless: callers performing a batch must add every
returned id to their in-batch set before the next call.
"""

import re
import time
from typing import AbstractSet, Callable

TRAILING_NUMBER = re.compile(r'(\d+)$')
PREFIX_AND_NUMBER = re.compile(r'^(.*?)(\d+)$')


class AutoIdAllocator:
    """Collision-free identifier allocation for single and bulk creation"""

    PAD_WIDTH = 3

    @staticmethod
    def group_prefix(group_name: str) -> str:
        """Group name with all whitespace removed, e.g. "Heights Safety" -> "HeightsSafety" """
        return ''.join(str(group_name).split())

    @staticmethod
    def _is_taken(candidate: str, existing_ids: AbstractSet[str], in_use_this_batch: AbstractSet[str]) -> bool:
        return candidate in existing_ids or candidate in in_use_this_batch

    @classmethod
    def allocate(cls, group_name: str, existing_ids: AbstractSet[str],
                 in_use_this_batch: AbstractSet[str]) -> str:
        """
        Allocate the next identifier for a group.

        Args:
            group_name: Group/category name
            existing_ids: Identifiers already persisted
            in_use_this_batch: Identifiers handed out earlier in the same batch

        Returns:
            prefix + zero-padded (highest existing number + 1), bumped until free
        """
        prefix = cls.group_prefix(group_name)

        numbers = []
        for existing in existing_ids:
            if not existing or not existing.startswith(prefix):
                continue
            match = TRAILING_NUMBER.search(existing)
            if match and int(match.group(1)) > 0:
                numbers.append(int(match.group(1)))

        counter = max(numbers) + 1 if numbers else 1
        candidate = f"{prefix}{str(counter).zfill(cls.PAD_WIDTH)}"
        while cls._is_taken(candidate, existing_ids, in_use_this_batch):
            counter += 1
            candidate = f"{prefix}{str(counter).zfill(cls.PAD_WIDTH)}"
        return candidate

    @classmethod
    def resolve_explicit(cls, auto_id: str, existing_ids: AbstractSet[str],
                         in_use_this_batch: AbstractSet[str],
                         clock: Callable[[], float] = time.time) -> str:
        """
        Keep a caller-supplied identifier, or make it unique if it collides.

        A trailing number is incremented (keeping its zero padding) until free.
        Without a trailing number a 4-digit timestamp-derived suffix is
        appended and bumped until free.
        """
        if not cls._is_taken(auto_id, existing_ids, in_use_this_batch):
            return auto_id

        parts = PREFIX_AND_NUMBER.match(auto_id)
        if parts:
            base_prefix, digits = parts.groups()
            number = int(digits)
            candidate = auto_id
            while cls._is_taken(candidate, existing_ids, in_use_this_batch):
                number += 1
                candidate = f"{base_prefix}{str(number).zfill(len(digits))}"
            return candidate

        suffix = int(clock() * 1000) % 10000
        candidate = f"{auto_id}-{suffix:04d}"
        while cls._is_taken(candidate, existing_ids, in_use_this_batch):
            suffix = (suffix + 1) % 10000
            candidate = f"{auto_id}-{suffix:04d}"
        return candidate
