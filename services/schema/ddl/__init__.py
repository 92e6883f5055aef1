"""Typed structural statements and their rendering."""

from .privileges import Privilege, privilege_list
from .rendering import qualified_name, quote_identifier, string_literal
from .statements import (
    AddColumnIfAbsent,
    AlterRoleBaseline,
    CommentOn,
    CreateDomainIfAbsent,
    CreateExtensionIfAbsent,
    CreateIndexIfAbsent,
    CreateOrReplaceTenantSetter,
    CreateOrReplaceTriggerFunction,
    CreateOrReplaceUuidConstantFunction,
    CreateRole,
    CreateSchemaIfAbsent,
    CreateTrigger,
    DdlStatement,
    ForeignKeyRef,
    GrantSchemaUsage,
    GrantTablePrivilege,
    RevokeSchemaCreateFromPublic,
    RevokeTablePrivilege,
    SetAllTablesPrivileges,
    SetDefaultTablePrivileges,
    SetRoleLogin,
    SetSessionSetting,
    display_sql,
    require_setting_name,
)

__all__ = [
    "AddColumnIfAbsent",
    "AlterRoleBaseline",
    "CommentOn",
    "CreateDomainIfAbsent",
    "CreateExtensionIfAbsent",
    "CreateIndexIfAbsent",
    "CreateOrReplaceTenantSetter",
    "CreateOrReplaceTriggerFunction",
    "CreateOrReplaceUuidConstantFunction",
    "CreateRole",
    "CreateSchemaIfAbsent",
    "CreateTrigger",
    "DdlStatement",
    "ForeignKeyRef",
    "GrantSchemaUsage",
    "GrantTablePrivilege",
    "Privilege",
    "RevokeSchemaCreateFromPublic",
    "RevokeTablePrivilege",
    "SetAllTablesPrivileges",
    "SetDefaultTablePrivileges",
    "SetRoleLogin",
    "SetSessionSetting",
    "display_sql",
    "privilege_list",
    "qualified_name",
    "quote_identifier",
    "require_setting_name",
    "string_literal",
]
