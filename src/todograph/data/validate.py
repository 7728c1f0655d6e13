from typing import Any, Dict

from jsonschema import validate, ValidationError, SchemaError
from packaging import version

from todograph.errors import CorruptionError, FatalError, MigrationNeededError
from todograph.logs import get_logger
from todograph.models import TaskSnapshot
from todograph.version import APP_SCHEMA_VERSION

log = get_logger("data.validate")

_SNAPSHOT_SCHEMA = None

def snapshot_schema() -> dict:
    """JSON schema of the snapshot file, generated from the pydantic model."""
    global _SNAPSHOT_SCHEMA
    if _SNAPSHOT_SCHEMA is None:
        schema = TaskSnapshot.model_json_schema()
        schema["$schema"] = "https://json-schema.org/draft/2020-12/schema"
        _SNAPSHOT_SCHEMA = schema
    return _SNAPSHOT_SCHEMA

def check_schema_version(file_version: str, source: str = "data file") -> None:
    """
    Refuse data written by a newer schema than this build understands.

    Older or equal versions load as they are.
    """
    try:
        parsed = version.parse(file_version)
    except version.InvalidVersion as e:
        raise CorruptionError(f"Invalid schema version '{file_version}' in {source}") from e

    if parsed > version.parse(APP_SCHEMA_VERSION):
        raise MigrationNeededError(
            f"{source} uses schema {file_version}, newer than supported {APP_SCHEMA_VERSION}; upgrade todograph"
        )
    log.debug(f"{source}: schema {file_version}, app {APP_SCHEMA_VERSION}")

def validate_snapshot_data(data: Dict[str, Any], source: str = "data file") -> None:
    """
    Validate raw snapshot data against the snapshot schema.

    Raises:
        CorruptionError: if the data does not match the schema.
        FatalError: if the generated schema itself is invalid.
    """
    try:
        validate(instance=data, schema=snapshot_schema())
    except ValidationError as e:
        log.error(f"{source} FAILED validation: {e.message}")
        raise CorruptionError(f"{source} is not a valid task snapshot: {e.message}") from e
    except SchemaError as e:
        log.critical(f"Snapshot schema is invalid: {e.message}")
        raise FatalError(f"Snapshot schema is invalid: {e.message}") from e

    check_schema_version(data.get("schema_version", APP_SCHEMA_VERSION), source)
    log.info(f"{source} is VALID for schema version {APP_SCHEMA_VERSION}")
