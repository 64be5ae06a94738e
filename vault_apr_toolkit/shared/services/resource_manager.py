"""Access to the JSON resources packaged with the toolkit (contract ABIs)."""

import json
from pathlib import Path
from typing import Any, Dict, List


class ResourceManager:
    """Loads files under ``vault_apr_toolkit/resources`` with a cache."""

    def __init__(self, root: Path = None):
        package_root = Path(__file__).resolve().parent.parent.parent
        self._root = (root or package_root / "resources").resolve()
        self._cache: Dict[str, Any] = {}

    def get_resource_path(self, resource_type: str, filename: str) -> Path:
        """Path of a resource file, refusing anything outside the root."""
        path = (self._root / resource_type / filename).resolve()
        try:
            path.relative_to(self._root)
        except ValueError:
            raise ValueError(
                f"Resource {resource_type}/{filename} is outside {self._root}"
            )
        return path

    def load_abi(self, name: str) -> List[Dict[str, Any]]:
        """ABI of ``resources/abi/<name>.json``."""
        key = f"abi:{name}"
        if key not in self._cache:
            path = self.get_resource_path("abi", f"{name}.json")
            if not path.exists():
                raise FileNotFoundError(f"ABI file not found: {path}")
            with open(path) as f:
                self._cache[key] = json.load(f)
        return self._cache[key]


resource_manager = ResourceManager()
