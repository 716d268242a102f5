"""Write handles bound to one stored set or line."""

from __future__ import annotations

from core.types import LinearDatapoint, XYDatapoint
from store.record_store import RecordStore


class LinearSetHandle:
    """Histogram set identified by its code within one store."""

    def __init__(self, store: RecordStore, code: str) -> None:
        self._store = store
        self._code = code

    @property
    def code(self) -> str:
        return self._code

    def add(self, datapoint: LinearDatapoint) -> int:
        """Record a new value for the point's group.

        Args:
            datapoint: Point to store; its group is the key.

        Returns:
            Version assigned to the write.
        """
        return self._store.add_linear(self._code, datapoint)

    def revert(self, group: str, to_version: int | None = None) -> None:
        """Undo the latest write to a group, or roll it back to a version.

        Args:
            group: Key to revert.
            to_version: Version to reactivate; newer versions are deactivated.
        """
        self._store.revert_linear(self._code, group, to_version)

    def version(self, group: str) -> int:
        return self._store.linear_version(self._code, group)

    def versions(self, group: str) -> tuple[int, ...]:
        return self._store.linear_versions(self._code, group)

    def current(self) -> tuple[LinearDatapoint, ...]:
        return self._store.current_linear(self._code)


class XYLineHandle:
    """Line identified by its code within one store."""

    def __init__(self, store: RecordStore, code: str) -> None:
        self._store = store
        self._code = code

    @property
    def code(self) -> str:
        return self._code

    def add(self, datapoint: XYDatapoint) -> int:
        """Record a new value for the point's tag.

        Returns:
            Tag used; untagged points take the next free tag.
        """
        return self._store.add_xy(self._code, datapoint)

    def revert(self, tag: int, to_version: int | None = None) -> None:
        self._store.revert_xy(self._code, tag, to_version)

    def version(self, tag: int) -> int:
        return self._store.xy_version(self._code, tag)

    def versions(self, tag: int) -> tuple[int, ...]:
        return self._store.xy_versions(self._code, tag)

    def current(self) -> tuple[XYDatapoint, ...]:
        return self._store.current_xy(self._code)
