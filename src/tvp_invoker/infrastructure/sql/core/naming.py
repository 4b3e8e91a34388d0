"""
Naming conventions for table types, stored procedures and registry keys.

Conventions:
- Table type:  ``<schema><prefix><TypeName>``, e.g. ``dbo.Contact`` or
  ``dbo.uddtContact``; schema defaults to ``dbo.`` (trailing dot included)
- Procedure:   ``<schema>Save<PluralTypeName>``, e.g. ``dbo.SaveCompanies``
- Registry key: fully qualified type names and the procedure name joined by
  ``|``; the default registration uses an empty procedure name
"""

from typing import Optional, Sequence

import inflection

DEFAULT_SCHEMA = "dbo."
KEY_DELIMITER = "|"


def qualified_type_name(record_type: type) -> str:
    """Return ``module.QualName`` for a record type."""
    return f"{record_type.__module__}.{record_type.__qualname__}"


def registration_key(
    record_types: Sequence[type], procedure_name: Optional[str] = None
) -> str:
    """
    Build the registry key for an ordered type sequence and procedure name.

    Examples:
        >>> registration_key([Contact], "dbo.SaveContacts")
        'app.models.Contact|dbo.SaveContacts'
        >>> registration_key([Contact])
        'app.models.Contact|'
    """
    type_names = KEY_DELIMITER.join(qualified_type_name(t) for t in record_types)
    return f"{type_names}{KEY_DELIMITER}{procedure_name or ''}"


def tabular_type_name(
    record_type: type,
    schema: Optional[str] = None,
    prefix: Optional[str] = None,
    override: Optional[str] = None,
) -> str:
    """
    Resolve the table type name for one positional record type.

    A non-blank override is used verbatim.

    Examples:
        >>> tabular_type_name(Contact)
        'dbo.Contact'
        >>> tabular_type_name(Contact, prefix="uddt")
        'dbo.uddtContact'
        >>> tabular_type_name(Contact, override="hr.uddtEmployeeContact")
        'hr.uddtEmployeeContact'
    """
    if override is not None and override.strip():
        return override
    return f"{schema or DEFAULT_SCHEMA}{prefix or ''}{record_type.__name__}"


def default_procedure_name(record_type: type, schema: Optional[str] = None) -> str:
    """
    Derive the conventional Save procedure name for a record type.

    Examples:
        >>> default_procedure_name(Contact)
        'dbo.SaveContacts'
        >>> default_procedure_name(Company)
        'dbo.SaveCompanies'
    """
    return f"{schema or DEFAULT_SCHEMA}Save{inflection.pluralize(record_type.__name__)}"


def split_type_name(type_name: str) -> tuple:
    """
    Split ``schema.Type`` into ``(schema, Type)``; schema is None when absent.

    Examples:
        >>> split_type_name("hr.uddtEmployeeContact")
        ('hr', 'uddtEmployeeContact')
        >>> split_type_name("Contact")
        (None, 'Contact')
    """
    schema, dot, name = type_name.rpartition(".")
    if not dot:
        return None, name
    return schema.strip("[]") or None, name.strip("[]")
