"""
Load candidate profiles and form-field descriptors from YAML or JSON files
"""

import json
import logging
from pathlib import Path
from typing import Any, List, Union

import yaml
from pydantic import ValidationError

from ..core.models import FormField, UserProfile

logger = logging.getLogger(__name__)


class ProfileLoadError(Exception):
    """Profile or field file is missing, unparsable, or fails validation"""


def load_structured_file(path: Union[str, Path]) -> Any:
    """Parse a .json, .yaml or .yml file"""
    path = Path(path)
    if not path.exists():
        raise ProfileLoadError(f"File not found: {path}")

    try:
        with open(path, "r", encoding="utf-8") as f:
            if path.suffix.lower() == ".json":
                return json.load(f)
            return yaml.safe_load(f)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise ProfileLoadError(f"Could not parse {path}: {e}") from e


def load_profile(path: Union[str, Path]) -> UserProfile:
    """Load and validate a UserProfile"""
    data = load_structured_file(path) or {}
    try:
        profile = UserProfile.model_validate(data)
    except ValidationError as e:
        raise ProfileLoadError(f"Invalid profile in {path}: {e}") from e
    logger.debug(f"Loaded profile from {path}")
    return profile


def parse_form_fields(data: Any) -> List[FormField]:
    """One field dict or a list of them, in the browser layer's shape"""
    items = data if isinstance(data, list) else [data]
    try:
        return [FormField.model_validate(item) for item in items]
    except ValidationError as e:
        raise ProfileLoadError(f"Invalid form field: {e}") from e


def load_form_fields(source: Union[str, Path]) -> List[FormField]:
    """Form fields from a file path or an inline JSON string"""
    text = str(source).strip()
    if text.startswith("{") or text.startswith("["):
        try:
            return parse_form_fields(json.loads(text))
        except json.JSONDecodeError as e:
            raise ProfileLoadError(f"Invalid field JSON: {e}") from e
    return parse_form_fields(load_structured_file(source))
