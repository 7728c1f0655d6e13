import tempfile, yaml, json, os
from datetime import date
from typing import Union, Dict, Any, Optional
from pathlib import Path
from todograph.errors import FileOperationError, FatalError, CorruptionError
from todograph.logs import get_logger

log = get_logger("data.io")

DATA_YAML = 0
DATA_JSON = 1

def data_type_for(file_path: Union[Path, str]) -> int:
    """Pick the serialization format from the file extension (YAML unless .json)."""
    return DATA_JSON if Path(file_path).suffix.lower() == ".json" else DATA_YAML

def _cleanup(temp_path: Optional[str]):
    if temp_path is not None and os.path.exists(temp_path):
        try:
            os.unlink(temp_path)
            log.debug(f"Cleaned up temporary file: {temp_path}")
        except OSError as cleanup_error:
            log.warning(f"Could not clean up temp file {temp_path}: {cleanup_error}")

def _create_dirs(file_path: Path):
    try:
        file_path.parent.mkdir(parents=True, exist_ok=True)
    except (OSError, PermissionError) as e:
        error_msg = f"Cannot create directory {file_path.parent}: {e}"
        log.error(error_msg)
        raise FileOperationError(error_msg) from e

def atomic_write(data_type: int, file_path: Union[Path, str], data: Dict[str, Any], create_dirs: bool = False):
    """
    Serialize and save data to a YAML or JSON file using atomic updates.
    """
    file_path = Path(file_path)
    temp_path = None

    try:
        if create_dirs:
            _create_dirs(file_path)

        # Temporary file lives next to the target so os.replace stays atomic
        with tempfile.NamedTemporaryFile(mode='w', encoding='utf-8', dir=file_path.parent, prefix=f".{file_path.name}.", suffix='.tmp', delete=False) as temp_file:
            temp_path = temp_file.name
            if data_type == DATA_YAML:
                yaml.safe_dump(data, temp_file, default_flow_style=False, sort_keys=False, indent=2, allow_unicode=True)
            elif data_type == DATA_JSON:
                json.dump(data, temp_file, indent=2, ensure_ascii=False)
            else:
                raise FatalError("Unsupported Data Format")
            temp_file.flush()
            os.fsync(temp_file.fileno())

        os.replace(temp_path, file_path)
        log.debug(f"Successfully saved data file: {file_path}")
        return True

    except (yaml.YAMLError, TypeError, ValueError) as e:
        _cleanup(temp_path)
        error_msg = (f"Data serialization failed for {file_path}. "
                    f"In-memory data may be corrupt or contain non-serializable types: {e}")
        log.critical(error_msg)
        raise FatalError(error_msg) from e

    except OSError as e:
        _cleanup(temp_path)
        error_msg = f"I/O error saving data file {file_path}: {e}"
        log.error(error_msg)
        raise FileOperationError(error_msg) from e

def load_data_file(file_path: Union[Path, str]) -> Union[None, Dict]:
    """
    Load and parse a YAML or JSON data file.

    Args:
        file_path: Path to the data file

    Returns:
        Parsed data as dict, or None if the file doesn't exist
    """
    file_path = Path(file_path)
    if not file_path.exists():
        return None

    try:
        with open(file_path, 'r', encoding='utf-8') as f:
            if data_type_for(file_path) == DATA_JSON:
                data = json.load(f)
            else:
                data = yaml.safe_load(f)

    except (json.JSONDecodeError, yaml.YAMLError) as e:
        # Syntax errors mean the file is corrupted
        raise CorruptionError(f"Syntax error in {file_path}: {e}") from e
    except OSError as e:
        raise FileOperationError(f"Failed to read file {file_path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise CorruptionError(f"File {file_path} contains invalid data structure")
    return _dates_to_text(data)

def _dates_to_text(value: Any) -> Any:
    # Unquoted YAML dates load as date objects; the schema expects ISO strings
    if isinstance(value, dict):
        return {k: _dates_to_text(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_dates_to_text(v) for v in value]
    if isinstance(value, date):
        return value.isoformat()
    return value
