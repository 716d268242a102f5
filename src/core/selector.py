"""Regex selection of experiment codes and types.

A code or type is excluded when it matches any exclude pattern, or when
include patterns exist and none of them match.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Sequence

from core.errors import BencherConfigError


@dataclass(frozen=True)
class Selector:
    """Include/exclude pattern lists over codes and experiment types."""

    code_include: tuple[re.Pattern[str], ...] = ()
    code_exclude: tuple[re.Pattern[str], ...] = ()
    type_include: tuple[re.Pattern[str], ...] = ()
    type_exclude: tuple[re.Pattern[str], ...] = ()

    @classmethod
    def from_patterns(
        cls,
        code_include: Sequence[str] = (),
        code_exclude: Sequence[str] = (),
        type_include: Sequence[str] = (),
        type_exclude: Sequence[str] = (),
    ) -> "Selector":
        """Compile raw pattern strings.

        Raises:
            BencherConfigError: If a pattern is not a valid regex.
        """
        return cls(
            code_include=_compile_all(code_include),
            code_exclude=_compile_all(code_exclude),
            type_include=_compile_all(type_include),
            type_exclude=_compile_all(type_exclude),
        )

    def select_code(self, code: str) -> bool:
        return _selects(code, self.code_include, self.code_exclude)

    def select_type(self, exp_type: str) -> bool:
        return _selects(exp_type, self.type_include, self.type_exclude)

    def matches(self, code: str, exp_type: str) -> bool:
        """Return whether both the code and its type are selected."""
        return self.select_code(code) and self.select_type(exp_type)


ALL = Selector()


def _compile_all(patterns: Sequence[str]) -> tuple[re.Pattern[str], ...]:
    compiled = []
    for pattern in patterns:
        try:
            compiled.append(re.compile(pattern))
        except re.error as error:
            raise BencherConfigError(
                f"Invalid selector pattern '{pattern}': {error}. Fix the regular expression."
            ) from error
    return tuple(compiled)


def _selects(
    text: str,
    include: tuple[re.Pattern[str], ...],
    exclude: tuple[re.Pattern[str], ...],
) -> bool:
    if any(pattern.search(text) for pattern in exclude):
        return False
    if include and not any(pattern.search(text) for pattern in include):
        return False
    return True
