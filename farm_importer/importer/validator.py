import json
import os
from functools import lru_cache
from typing import Any, Dict, Optional, Tuple

from jsonschema import validate, ValidationError

from farm_importer.taxonomy import is_valid_category

# Path: farm_importer/schemas/
SCHEMA_DIR = os.path.join(
    os.path.dirname(os.path.dirname(__file__)),
    "schemas"
)

RECORD_SCHEMA = "record.json"


@lru_cache(maxsize=None)
def load_schema(filename: str = RECORD_SCHEMA) -> Dict[str, Any]:
    """
    Load a JSON schema file shipped with the package.
    """
    path = os.path.join(SCHEMA_DIR, filename)

    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


INVALID_CATEGORY_NOTE = "Invalid category: "


def category_error(category: Any) -> Optional[str]:
    """
    Return the review note for a category outside the taxonomy, or None.
    """
    if is_valid_category(category):
        return None
    return f"{INVALID_CATEGORY_NOTE}{category}"


def validate_record(data: Dict[str, Any]) -> Tuple[bool, str]:
    """
    Validate a serialized record against the record schema.

    Returns:
        (True, "") if valid
        (False, "<error message>") if invalid
    """
    try:
        validate(instance=data, schema=load_schema())
        return True, ""
    except ValidationError as e:
        return False, e.message
    except (OSError, ValueError) as e:
        return False, f"Schema load/validation error: {e}"
