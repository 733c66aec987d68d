"""Tests for the persona catalog."""

import shutil

import pytest

from challenger.core import persona_loader
from challenger.core.config import PROJECT_ROOT
from challenger.core.exceptions import ConfigurationError, UnknownPersonaError
from challenger.core.persona_loader import (
    PersonaCatalog,
    get_persona_catalog,
    load_persona_file,
)
from challenger.domain.models.persona import PersonaId
from challenger.domain.models.phase import Phase

CONFIG_DIR = PROJECT_ROOT / "config"


class TestPersonaCatalog:
    def test_loads_all_personas(self, personas):
        assert len(personas) == 4
        assert set(personas.ids()) == set(PersonaId)

    def test_get_by_string_and_enum(self, personas):
        assert personas.get("efficiency").id == PersonaId.EFFICIENCY
        assert personas.get(PersonaId.INVESTOR).display_name == "Investor Mindset"

    def test_unknown_persona_raises(self, personas):
        with pytest.raises(UnknownPersonaError, match="pirate"):
            personas.get("pirate")

    def test_contains(self, personas):
        assert "moonshot" in personas
        assert "pirate" not in personas

    def test_default_document_types(self, personas):
        assert personas.get("efficiency").document_type == "strategy"
        assert personas.get("moonshot").document_type == "exec"
        assert personas.get("customer").document_type == "founder"
        assert personas.get("investor").document_type == "founder"

    @pytest.mark.parametrize("persona_id", list(PersonaId))
    def test_every_persona_has_patterns_for_open_phases(self, personas, persona_id):
        persona = personas.get(persona_id)
        for phase in (Phase.PROVOCATION, Phase.DEEP_DIVE, Phase.SYNTHESIS):
            assert persona.patterns_for(phase)
        assert persona.patterns_for(Phase.OUTPUT) == ()

    def test_emotion_and_expression_cues(self, personas):
        efficiency = personas.get("efficiency")
        assert efficiency.emotion_for(Phase.PROVOCATION) == "impatient"
        assert efficiency.expression_for(Phase.SYNTHESIS) == "determined"
        # output has no cue configured
        assert efficiency.emotion_for(Phase.OUTPUT) == "challenging"
        assert efficiency.expression_for(Phase.OUTPUT) == "questioning"

    def test_catalog_is_read_only(self, personas):
        with pytest.raises(TypeError):
            personas._personas[PersonaId.EFFICIENCY] = None


class TestLoadingErrors:
    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError, match="not found"):
            load_persona_file(tmp_path / "efficiency.yaml")

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "efficiency.yaml"
        path.write_text("id: [unclosed")
        with pytest.raises(ConfigurationError, match="Invalid YAML"):
            load_persona_file(path)

    def test_invalid_definition(self, tmp_path):
        path = tmp_path / "efficiency.yaml"
        path.write_text("id: pirate\ndisplay_name: Pirate\ndocument_type: strategy\n")
        with pytest.raises(ConfigurationError, match="Invalid persona definition"):
            load_persona_file(path)

    def test_directory_missing_a_persona(self, tmp_path):
        for name in ("efficiency", "moonshot", "customer"):
            shutil.copy(CONFIG_DIR / "personas" / f"{name}.yaml", tmp_path)
        with pytest.raises(ConfigurationError, match="investor"):
            PersonaCatalog.from_directory(tmp_path)

    def test_mismatched_id(self, tmp_path):
        for persona_id in PersonaId:
            shutil.copy(CONFIG_DIR / "personas" / f"{persona_id.value}.yaml", tmp_path)
        shutil.copy(CONFIG_DIR / "personas" / "moonshot.yaml", tmp_path / "customer.yaml")

        with pytest.raises(ConfigurationError, match="declares id 'moonshot'"):
            PersonaCatalog.from_directory(tmp_path)


def test_get_persona_catalog_is_cached():
    persona_loader.clear_cache()
    first = get_persona_catalog(CONFIG_DIR / "personas")
    second = get_persona_catalog(CONFIG_DIR / "personas")
    assert first is second
    persona_loader.clear_cache()
