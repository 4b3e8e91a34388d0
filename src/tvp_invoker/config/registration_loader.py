"""
Declarative procedure registrations loaded from YAML.

File layout:

    procedures:
      - name: dbo.ProcessEmployeeContacts
        types: ["app.models:Contact", "app.models:EmployeeContact"]
        tabular_types: [null, hr.uddtEmployeeContact]
      - types: ["app.models:Company"]        # -> dbo.SaveCompanies

Types are referenced as ``module:QualName``. Entries are registered in file
order, so the first entry for a type set becomes its default procedure.
"""

import importlib
from pathlib import Path
from typing import List, Optional, Union

import structlog
import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from tvp_invoker.exceptions import RegistrationConfigError

logger = structlog.get_logger(__name__)


class ProcedureEntry(BaseModel):
    """Schema for a single procedure registration."""

    name: Optional[str] = Field(None, description="Stored procedure name")
    types: List[str] = Field(..., min_length=1, description="module:QualName per TVP")
    tabular_types: Optional[List[Optional[str]]] = Field(
        None, description="Table type name overrides aligned with types"
    )

    @field_validator("types")
    @classmethod
    def validate_type_references(cls, v: List[str]) -> List[str]:
        for ref in v:
            module, sep, qualname = ref.partition(":")
            if not sep or not module.strip() or not qualname.strip():
                raise ValueError(
                    f"Type reference '{ref}' must look like 'package.module:ClassName'"
                )
        return v


class RegistrationsConfig(BaseModel):
    """Schema for the registrations file."""

    procedures: List[ProcedureEntry] = Field(default_factory=list)


def import_type(reference: str) -> type:
    """
    Import a class from a ``module:QualName`` reference.

    Raises:
        ImportError: If the module cannot be imported
        AttributeError: If the name does not exist in the module
        TypeError: If the referenced object is not a class
    """
    module_name, _, qualname = reference.partition(":")
    obj: object = importlib.import_module(module_name.strip())
    for part in qualname.strip().split("."):
        obj = getattr(obj, part)
    if not isinstance(obj, type):
        raise TypeError(f"'{reference}' does not refer to a class")
    return obj


def read_registrations(path: Union[str, Path]) -> RegistrationsConfig:
    """
    Read and validate a registrations file.

    Raises:
        RegistrationConfigError: If the file is missing, not valid YAML, or
            does not match the schema
    """
    config_path = Path(path)
    if not config_path.exists():
        raise RegistrationConfigError(
            "Registrations file not found", config_path=str(config_path)
        )

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise RegistrationConfigError(
            f"Invalid YAML: {e}", config_path=str(config_path)
        ) from e

    if not isinstance(data, dict):
        raise RegistrationConfigError(
            "Top-level YAML must be a mapping", config_path=str(config_path)
        )

    try:
        return RegistrationsConfig(**data)
    except ValidationError as e:
        raise RegistrationConfigError(
            f"Invalid registrations: {e}", config_path=str(config_path)
        ) from e


def load_registrations(path: Union[str, Path], registry) -> List:
    """
    Register every procedure listed in a YAML file.

    Args:
        path: Registrations file
        registry: ProcedureRegistry to register into

    Returns:
        The registered ProcedureDescriptor objects, in file order

    Raises:
        RegistrationConfigError: If the file is invalid or a type cannot be
            imported
        AlreadyRegisteredError: If an entry duplicates an existing
            registration
    """
    config = read_registrations(path)

    descriptors = []
    for entry in config.procedures:
        try:
            record_types = [import_type(ref) for ref in entry.types]
        except (ImportError, AttributeError, TypeError) as e:
            raise RegistrationConfigError(
                f"Cannot import record type: {e}", config_path=str(path)
            ) from e

        descriptors.append(
            registry.register(record_types, entry.name, entry.tabular_types)
        )

    logger.info(
        "registrations.loaded", config_path=str(path), procedure_count=len(descriptors)
    )
    return descriptors
