"""Memory permissions: the ``rwxp`` column of a memory map.

Every mapped region carries four independent capability bits:

- **readable**: loads from the region are allowed.
- **writable**: stores to the region are allowed.
- **executable**: the CPU may fetch instructions from it.
- **private_mapping**: copy-on-write private (``p``) rather than
  shared with other mappings of the same object (``s``).

The canonical text form is exactly four position-significant
characters, as printed by ``/proc/<pid>/maps``: ``r-xp``, ``rw-s``.
"""

from dataclasses import dataclass

_PERM_STRING_LEN = 4


@dataclass(frozen=True)
class MemoryPermissions:
    """Read/write/execute/private capability tuple for one region.

    All flags default to False, so ``MemoryPermissions(executable=True)``
    reads naturally as "at least executable" when used as a query.
    """

    readable: bool = False
    writable: bool = False
    executable: bool = False
    private_mapping: bool = False

    def to_string(self) -> str:
        """Render the canonical 4-character form (e.g. ``"rw-p"``)."""
        return (
            ("r" if self.readable else "-")
            + ("w" if self.writable else "-")
            + ("x" if self.executable else "-")
            + ("p" if self.private_mapping else "s")
        )

    @classmethod
    def from_string(cls, perm_str: str) -> "MemoryPermissions":
        """Parse the 4-character form.

        Strings shorter than four characters give all-false permissions.
        Each position is read on its own; anything other than the "set"
        character for that position counts as unset, so unknown
        characters never raise.
        """
        if len(perm_str) < _PERM_STRING_LEN:
            return cls()
        return cls(
            readable=perm_str[0] == "r",
            writable=perm_str[1] == "w",
            executable=perm_str[2] == "x",
            private_mapping=perm_str[3] == "p",
        )

    def is_subset_of(self, other: "MemoryPermissions") -> bool:
        """Return True if every flag set here is also set on *other*.

        Flags that are False here impose no constraint on *other*.
        """
        return (
            (not self.readable or other.readable)
            and (not self.writable or other.writable)
            and (not self.executable or other.executable)
            and (not self.private_mapping or other.private_mapping)
        )

    def __str__(self) -> str:
        """Return the canonical 4-character form."""
        return self.to_string()
