"""
Write the OpenAPI document of the catalog API to interfaces/openapi.json.

Usage:
    python -m catalog_core.api.generate_openapi
"""
import json
import os
from typing import Any, Dict

from catalog_core.api.main import app
from catalog_core.db.models.associations import ASSOCIATIONS
from catalog_core.db.models.catalog import ENTITY_KINDS


# PUBLIC_INTERFACE
def build_openapi() -> Dict[str, Any]:
    """OpenAPI schema plus the registered association and entity kind names (x- extensions)."""
    openapi_schema = app.openapi()
    # Path parameters {name} and {kind} accept only these registered values
    openapi_schema["x-associations"] = sorted(ASSOCIATIONS)
    openapi_schema["x-entity-kinds"] = sorted(ENTITY_KINDS)
    return openapi_schema


if __name__ == "__main__":
    output_dir = "interfaces"
    os.makedirs(output_dir, exist_ok=True)
    output_path = os.path.join(output_dir, "openapi.json")

    with open(output_path, "w") as f:
        json.dump(build_openapi(), f, indent=2)
