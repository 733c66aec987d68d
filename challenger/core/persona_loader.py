"""Persona catalog.

Loads persona definitions from YAML files in config/personas/, one file
per PersonaId. The catalog is built once and is read-only afterwards; it is
injected into the challenge generator and conversation sessions.
"""

from pathlib import Path
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Union

import pydantic
import structlog
import yaml

from challenger.core.config import settings
from challenger.core.exceptions import ConfigurationError, UnknownPersonaError
from challenger.domain.models.persona import PersonaDefinition, PersonaId

log = structlog.get_logger(__name__)

# Module-level cache (personas don't change at runtime)
_cache: Dict[str, "PersonaCatalog"] = {}


def load_persona_file(persona_file: Path) -> PersonaDefinition:
    """Load and validate a single persona YAML file.

    Raises:
        ConfigurationError: If the file is missing, unreadable or invalid
    """
    if not persona_file.exists():
        raise ConfigurationError(f"Persona file not found: {persona_file}")

    try:
        with open(persona_file) as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {persona_file}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"Persona file {persona_file} is not a mapping")

    try:
        return PersonaDefinition(**data)
    except pydantic.ValidationError as e:
        raise ConfigurationError(
            f"Invalid persona definition in {persona_file}: {e}"
        ) from e


class PersonaCatalog:
    """Immutable registry of persona definitions keyed by PersonaId."""

    def __init__(self, personas: Mapping[PersonaId, PersonaDefinition]):
        self._personas = MappingProxyType(dict(personas))

    @classmethod
    def from_directory(cls, personas_dir: Optional[Path] = None) -> "PersonaCatalog":
        """Build a catalog from <personas_dir>/<persona_id>.yaml files.

        Every PersonaId must have a file whose id matches its name.

        Raises:
            ConfigurationError: If any persona file is missing or invalid
        """
        personas_dir = Path(personas_dir or settings.config_dir / "personas")

        personas: Dict[PersonaId, PersonaDefinition] = {}
        for persona_id in PersonaId:
            definition = load_persona_file(personas_dir / f"{persona_id.value}.yaml")
            if definition.id != persona_id:
                raise ConfigurationError(
                    f"Persona file {persona_id.value}.yaml declares id "
                    f"'{definition.id.value}'"
                )
            personas[persona_id] = definition

        log.info(
            "persona_catalog_loaded",
            personas_dir=str(personas_dir),
            personas=[p.value for p in personas],
        )
        return cls(personas)

    def get(self, persona_id: Union[PersonaId, str]) -> PersonaDefinition:
        """Look up a persona.

        Raises:
            UnknownPersonaError: If persona_id is not in the catalog
        """
        try:
            key = PersonaId(persona_id)
        except ValueError:
            raise UnknownPersonaError(
                f"Unknown persona: {persona_id!r}. "
                f"Available personas: {', '.join(p.value for p in self._personas)}"
            ) from None

        if key not in self._personas:
            raise UnknownPersonaError(f"Persona not loaded: {key.value}")
        return self._personas[key]

    def ids(self) -> List[PersonaId]:
        return list(self._personas)

    def all(self) -> List[PersonaDefinition]:
        return list(self._personas.values())

    def __contains__(self, persona_id: object) -> bool:
        try:
            return PersonaId(persona_id) in self._personas
        except ValueError:
            return False

    def __len__(self) -> int:
        return len(self._personas)


def get_persona_catalog(personas_dir: Optional[Path] = None) -> PersonaCatalog:
    """Return the shared catalog for personas_dir, loading it on first use."""
    key = str(personas_dir or settings.config_dir / "personas")
    if key not in _cache:
        _cache[key] = PersonaCatalog.from_directory(Path(key))
    return _cache[key]


def clear_cache() -> None:
    """Clear the catalog cache (mainly for testing)."""
    _cache.clear()
