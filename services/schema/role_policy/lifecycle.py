"""Role lifecycle: restrictive role creation and credential-driven login."""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence

from packages.schemaward_shared.config import SchemawardSettings
from packages.schemaward_shared.errors import DependencyMissingError
from packages.schemaward_shared.logging import get_logger, public_api_logged
from resources.substrates.postgres.catalog import CatalogIntrospector, SchemaWriter
from services.schema.ddl import AlterRoleBaseline, CommentOn, CreateRole, SetRoleLogin
from services.schema.domain_registry import require_identifier
from services.schema.role_policy.domain import (
    ROLE_ARCHETYPES,
    LoginState,
    RoleArchetype,
    RoleProvisioning,
)
from services.schema.role_policy.service import RoleLifecycleService

_LOGGER = get_logger(__name__)
_COMPONENT_ID = "role_lifecycle"

PasswordLookup = Callable[[str], str]


def static_passwords(passwords: Mapping[str, str]) -> PasswordLookup:
    """Return a lookup over a fixed mapping; unknown roles have no password."""
    snapshot = dict(passwords)
    return lambda role: snapshot.get(role, "")


class DefaultRoleLifecycleService(RoleLifecycleService):
    """Role lifecycle manager over one catalog connection.

    Login state is never merged with what the database holds: each run
    reasserts it from the current credential.
    """

    def __init__(
        self,
        *,
        catalog: CatalogIntrospector,
        writer: SchemaWriter,
        password_lookup: PasswordLookup,
    ) -> None:
        self._catalog = catalog
        self._writer = writer
        self._password_lookup = password_lookup

    @classmethod
    def from_settings(
        cls,
        *,
        settings: SchemawardSettings,
        catalog: CatalogIntrospector,
        writer: SchemaWriter,
    ) -> "DefaultRoleLifecycleService":
        """Build a manager reading ``roles.<name>.password`` from settings."""
        return cls(
            catalog=catalog,
            writer=writer,
            password_lookup=settings.role_password,
        )

    @public_api_logged(logger=_LOGGER, component_id=_COMPONENT_ID, id_fields=("name",))
    def ensure_role(
        self, *, name: str, description: str, configure_login: bool = True
    ) -> RoleProvisioning:
        """Create the role if absent, reassert its baseline, and comment it."""
        name = require_identifier(name, field_name="role")
        created = False
        login: LoginState | None = None
        with self._writer.transaction():
            if not self._catalog.role_exists(name):
                self._writer.execute(CreateRole(name))
                created = True
                _LOGGER.info("role created")
            self._writer.execute(AlterRoleBaseline(name))
            self._writer.execute(CommentOn("ROLE", (name,), description))
            if configure_login:
                login = self._apply_login(name)
        return RoleProvisioning(role=name, created=created, login=login)

    @public_api_logged(logger=_LOGGER, component_id=_COMPONENT_ID, id_fields=("name",))
    def ensure_login(self, *, name: str) -> LoginState:
        """Toggle login from the configured credential for ``name``."""
        name = require_identifier(name, field_name="role")
        if not self._catalog.role_exists(name):
            raise DependencyMissingError(
                f"role does not exist: {name}",
                dependency=name,
                metadata={"role": name},
            )
        with self._writer.transaction():
            return self._apply_login(name)

    @public_api_logged(logger=_LOGGER, component_id=_COMPONENT_ID)
    def ensure_archetype_roles(
        self, *, archetypes: Sequence[RoleArchetype] | None = None
    ) -> tuple[RoleProvisioning, ...]:
        """Ensure each archetype role, using its description as the comment."""
        selected = tuple(archetypes) if archetypes is not None else ROLE_ARCHETYPES
        return tuple(
            self.ensure_role(name=archetype.name, description=archetype.description)
            for archetype in selected
        )

    def _apply_login(self, name: str) -> LoginState:
        """Issue the login statement; the password is never logged."""
        password = self._password_lookup(name)
        if not password:
            self._writer.execute(SetRoleLogin(name))
            _LOGGER.warning("no credential configured; login removed for role %s", name)
            return LoginState.NO_LOGIN
        self._writer.execute(SetRoleLogin(name, password))
        _LOGGER.info("login enabled for role %s", name)
        return LoginState.LOGIN
