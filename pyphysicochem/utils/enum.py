# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2024-2026 Antoine COLLET

"""Provide a str enum class."""

from enum import Enum


class StrEnum(str, Enum):
    """
    Enum where members are also (and must be) strings.

    The value of the member is returned by `str()` so that it can be used
    directly in formatted messages and compared with plain strings.
    """

    def __str__(self) -> str:
        return str(self.value)

    @classmethod
    def values(cls) -> list:
        """Return the list of the member values."""
        return [member.value for member in cls]
