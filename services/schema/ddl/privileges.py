"""Table privilege vocabulary."""

from __future__ import annotations

from enum import Enum

from packages.schemaward_shared.errors import ValidationError, codes


class Privilege(str, Enum):
    """Postgres table privileges a policy can target."""

    SELECT = "SELECT"
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    TRUNCATE = "TRUNCATE"
    REFERENCES = "REFERENCES"
    TRIGGER = "TRIGGER"

    @property
    def column_scoped(self) -> bool:
        """Return True when Postgres accepts a column list for this privilege."""
        return self in _COLUMN_SCOPED

    @classmethod
    def parse(cls, value: object) -> Privilege:
        """Return the privilege named by ``value``, case-insensitively."""
        if isinstance(value, Privilege):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().upper())
            except ValueError:
                pass
        raise ValidationError(
            f"unknown privilege {value!r}; expected one of: "
            + ", ".join(item.value for item in cls),
            code=codes.INVALID_ARGUMENT,
        )


_COLUMN_SCOPED = frozenset(
    {Privilege.SELECT, Privilege.INSERT, Privilege.UPDATE, Privilege.REFERENCES}
)


def privilege_list(privileges: tuple[Privilege, ...]) -> str:
    """Render privileges as a comma separated SQL list."""
    return ", ".join(item.value for item in privileges)
