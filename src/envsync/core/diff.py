"""Key-level diff between local and remote env content."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from envsync.core.parser import EnvContent


class DiffType(Enum):
    """Type of difference between local and remote content."""

    ADDED = "added"  # On remote but not local
    REMOVED = "removed"  # Local but not on remote
    CHANGED = "changed"  # Different values
    UNCHANGED = "unchanged"  # Same values


@dataclass
class VarDiff:
    """Difference for a single variable."""

    name: str
    diff_type: DiffType
    local_value: str | None  # Masked unless mask_values=False
    remote_value: str | None
    local_line: int | None = None
    remote_line: int | None = None


@dataclass
class DiffResult:
    """Result of comparing local content against remote content."""

    differences: list[VarDiff] = field(default_factory=list)

    @property
    def added_count(self) -> int:
        """Count of variables only present remotely."""
        return sum(1 for d in self.differences if d.diff_type == DiffType.ADDED)

    @property
    def removed_count(self) -> int:
        """Count of variables only present locally."""
        return sum(1 for d in self.differences if d.diff_type == DiffType.REMOVED)

    @property
    def changed_count(self) -> int:
        """Count of variables with different values."""
        return sum(1 for d in self.differences if d.diff_type == DiffType.CHANGED)

    @property
    def has_drift(self) -> bool:
        """Check if any variable differs.

        Formatting-only changes produce no drift here even though the raw
        content hashes differ.
        """
        return self.added_count + self.removed_count + self.changed_count > 0


class DiffEngine:
    """Compare local and remote env content."""

    MASK_VALUE = "********"

    def diff(
        self,
        local: EnvContent,
        remote: EnvContent,
        mask_values: bool = True,
        include_unchanged: bool = False,
    ) -> DiffResult:
        """Compare two parsed env contents.

        Args:
            local: Content read from disk
            remote: Content read from the storage backend
            mask_values: Replace values with a mask (env files hold secrets)
            include_unchanged: Whether to include unchanged vars in result
        """
        result = DiffResult()

        for var_name in sorted(set(local.variables) | set(remote.variables)):
            local_var = local.variables.get(var_name)
            remote_var = remote.variables.get(var_name)

            local_value = local_var.value if local_var else None
            remote_value = remote_var.value if remote_var else None

            if local_var is None:
                diff_type = DiffType.ADDED
            elif remote_var is None:
                diff_type = DiffType.REMOVED
            elif local_value != remote_value:
                diff_type = DiffType.CHANGED
            else:
                diff_type = DiffType.UNCHANGED
                if not include_unchanged:
                    continue

            if mask_values:
                local_value = self.MASK_VALUE if local_value is not None else None
                remote_value = self.MASK_VALUE if remote_value is not None else None

            result.differences.append(
                VarDiff(
                    name=var_name,
                    diff_type=diff_type,
                    local_value=local_value,
                    remote_value=remote_value,
                    local_line=local_var.line_number if local_var else None,
                    remote_line=remote_var.line_number if remote_var else None,
                )
            )

        return result
