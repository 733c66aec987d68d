"""Document template catalog.

Loads strategy document templates from config/documents.yaml. Each
top-level key is a document type mapping to a title and an ordered list of
section names.
"""

from pathlib import Path
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional

import pydantic
import structlog
import yaml

from challenger.core.config import settings
from challenger.core.exceptions import (
    ConfigurationError,
    UnknownDocumentTemplateError,
)
from challenger.domain.models.document import DocumentTemplate

log = structlog.get_logger(__name__)

_cache: Dict[str, "DocumentTemplateCatalog"] = {}


class DocumentTemplateCatalog:
    """Immutable registry of document templates keyed by document type."""

    def __init__(self, templates: Mapping[str, DocumentTemplate]):
        self._templates = MappingProxyType(dict(templates))

    @classmethod
    def from_file(cls, templates_file: Optional[Path] = None) -> "DocumentTemplateCatalog":
        """Build a catalog from a documents.yaml file.

        Raises:
            ConfigurationError: If the file is missing or invalid
        """
        templates_file = Path(templates_file or settings.config_dir / "documents.yaml")

        if not templates_file.exists():
            raise ConfigurationError(f"Document templates not found: {templates_file}")

        try:
            with open(templates_file) as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {templates_file}: {e}") from e

        if not isinstance(data, dict) or not data:
            raise ConfigurationError(f"No document templates in {templates_file}")

        templates: Dict[str, DocumentTemplate] = {}
        for doc_type, entry in data.items():
            try:
                templates[doc_type] = DocumentTemplate(id=doc_type, **entry)
            except (pydantic.ValidationError, TypeError) as e:
                raise ConfigurationError(
                    f"Invalid document template '{doc_type}': {e}"
                ) from e

        log.info("document_templates_loaded", templates=list(templates))
        return cls(templates)

    def get(self, document_type: str) -> DocumentTemplate:
        """Look up a template.

        Raises:
            UnknownDocumentTemplateError: If no template exists for document_type
        """
        if document_type not in self._templates:
            raise UnknownDocumentTemplateError(
                f"Unknown document type: {document_type!r}. "
                f"Available: {', '.join(self._templates)}"
            )
        return self._templates[document_type]

    def ids(self) -> List[str]:
        return list(self._templates)

    def __contains__(self, document_type: object) -> bool:
        return document_type in self._templates


def get_template_catalog(templates_file: Optional[Path] = None) -> DocumentTemplateCatalog:
    """Return the shared catalog for templates_file, loading it on first use."""
    key = str(templates_file or settings.config_dir / "documents.yaml")
    if key not in _cache:
        _cache[key] = DocumentTemplateCatalog.from_file(Path(key))
    return _cache[key]


def clear_cache() -> None:
    """Clear the catalog cache (mainly for testing)."""
    _cache.clear()
