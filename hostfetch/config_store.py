from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

import jsonschema
import yaml

from hostfetch.core.errors import ValidationError
from hostfetch.resources import config_schema_path


def read_document(path: Path) -> Any:
    """
    Read a YAML or JSON document. `.json` is parsed as JSON, everything else as YAML
    (a superset of JSON for our purposes).
    """
    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() == ".json":
        return json.loads(text)
    return yaml.safe_load(text)


class ConfigStore:
    """
    Loads the shipped config schema and validates configuration documents against it.
    """

    def __init__(self, schema_path: Optional[Path] = None):
        self._schema_path = schema_path or config_schema_path()
        self._schema: Optional[Dict[str, Any]] = None

    @property
    def schema_path(self) -> Path:
        return self._schema_path

    def schema(self) -> Dict[str, Any]:
        if self._schema is None:
            schema = json.loads(self._schema_path.read_text(encoding="utf-8"))
            jsonschema.Draft202012Validator.check_schema(schema)
            self._schema = schema
        return self._schema

    def validate(self, instance: Any) -> List[str]:
        """
        Validates an instance and returns a list of error strings (empty means valid).
        """
        validator = jsonschema.Draft202012Validator(self.schema())
        out: List[str] = []
        for e in sorted(validator.iter_errors(instance), key=str):
            where = "/".join(str(p) for p in e.absolute_path)
            out.append(f"{where}: {e.message}" if where else e.message)
        return out

    def load(self, path: Path) -> Dict[str, Any]:
        """
        Read and validate a configuration document. An empty file is an empty document.
        """
        if not path.exists():
            raise ValidationError(code="config.not_found", message=f"Config document not found: {path}")
        try:
            doc = read_document(path)
        except (yaml.YAMLError, json.JSONDecodeError) as e:
            raise ValidationError(
                code="config.unreadable",
                message=f"Config document is not valid YAML/JSON: {path}",
                data={"error": str(e)},
            ) from e
        if doc is None:
            doc = {}
        errors = self.validate(doc)
        if errors:
            raise ValidationError(
                code="config.invalid",
                message=f"Config document validation failed: {path}",
                data={"errors": errors},
            )
        return doc
