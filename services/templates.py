"""Project template loading from bundled YAML files."""

import yaml
from pathlib import Path
from typing import Any, Dict, List, Optional

from config import get_templates_dir
from logger import get_logger

logger = get_logger()


class TemplateLoader:
    """Loads project templates (seed categories, fields and settings)."""

    def __init__(self, templates_dir: Optional[Path] = None):
        """Initialize the template loader.

        Args:
            templates_dir: Directory containing template YAML files.
                          Defaults to db/seed/templates/ in the project.
        """
        self.templates_dir = templates_dir or get_templates_dir()
        self._cache: Dict[str, Dict[str, Any]] = {}

    def available(self) -> List[str]:
        """Names of all bundled templates, sorted."""
        if not self.templates_dir.exists():
            return []
        return sorted(path.stem for path in self.templates_dir.glob("*.yaml"))

    def load(self, name: str) -> Dict[str, Any]:
        """Load a template by name.

        Args:
            name: Template file name without the .yaml extension.

        Returns:
            Dictionary with optional "settings", "categories" and
            "custom_fields" keys.

        Raises:
            FileNotFoundError: If the template doesn't exist.
            yaml.YAMLError: If the YAML is invalid.
        """
        if name in self._cache:
            return self._cache[name]

        template_file = self.templates_dir / f"{name}.yaml"
        if not template_file.exists():
            raise FileNotFoundError(f"Template not found: {template_file}")

        logger.debug(f"Loading template from {template_file}")

        with open(template_file, "r") as f:
            template = yaml.safe_load(f) or {}

        self._cache[name] = template
        return template
