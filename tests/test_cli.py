"""Tests for the command-line interface."""

import json
from types import SimpleNamespace

import pytest

from mermaid_studio import cli
from mermaid_studio.errors import BackendError, ConfigError
from mermaid_studio.exporter import RenderExporter
from mermaid_studio.models import GenerationResult


def _args(**overrides):
    defaults = {"settings": None, "provider": None, "model": None}
    defaults.update(overrides)
    return SimpleNamespace(**defaults)


class TestLoadSettings:
    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("MERMAID_PROVIDER", "lmstudio")
        monkeypatch.setenv("LMSTUDIO_MODEL", "phi-3")
        settings = cli.load_settings(_args())
        assert settings["provider"] == "lmstudio"
        assert settings["lmstudio"]["model"] == "phi-3"

    def test_provider_flag(self, monkeypatch):
        monkeypatch.delenv("MERMAID_PROVIDER", raising=False)
        assert cli.load_settings(_args(provider="vertex"))["provider"] == "vertex"

    def test_model_override_uses_provider_field(self):
        settings = cli.load_settings(_args(provider="bedrock", model="amazon.titan-text-lite-v1"))
        assert settings["bedrock"]["modelId"] == "amazon.titan-text-lite-v1"

        settings = cli.load_settings(_args(provider="azure", model="gpt-4o-mini"))
        assert settings["azure"]["deployment"] == "gpt-4o-mini"

    def test_settings_file(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text(json.dumps({"provider": "ollama", "ollama": {"model": "mistral"}}))
        settings = cli.load_settings(_args(settings=str(path), model="llama3"))
        assert settings == {"provider": "ollama", "ollama": {"model": "llama3"}}

    @pytest.mark.parametrize("content", ["[1, 2]", '"ollama"', "42"])
    def test_settings_file_must_be_object(self, tmp_path, content):
        path = tmp_path / "settings.json"
        path.write_text(content)
        with pytest.raises(ConfigError, match="JSON object"):
            cli.load_settings(_args(settings=str(path), provider="ollama"))


class TestMain:
    def test_config(self, capsys):
        cli.main(["--config"])
        assert "Provider:" in capsys.readouterr().out

    def test_no_command(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            cli.main([])
        assert exc_info.value.code == 1

    def test_generate_prints_markup(self, monkeypatch, capsys):
        async def fake_generate(description, settings):
            assert description == "a login flow"
            return GenerationResult(mermaid_code="flowchart TD\nA-->B", provider="ollama", diagram_type="flowchart")

        monkeypatch.setattr(cli, "generate_diagram", fake_generate)

        with pytest.raises(SystemExit) as exc_info:
            cli.main(["generate", "a login flow", "--provider", "ollama"])

        assert exc_info.value.code == 0
        assert capsys.readouterr().out.strip() == "flowchart TD\nA-->B"

    def test_generate_json(self, monkeypatch, capsys):
        async def fake_generate(description, settings):
            return GenerationResult(mermaid_code="pie", provider="ollama", diagram_type="pie")

        monkeypatch.setattr(cli, "generate_diagram", fake_generate)

        with pytest.raises(SystemExit):
            cli.main(["generate", "pets", "--json"])

        data = json.loads(capsys.readouterr().out)
        assert data["mermaidCode"] == "pie"
        assert data["diagram_type"] == "pie"

    def test_generate_to_file(self, monkeypatch, tmp_path):
        async def fake_generate(description, settings):
            return GenerationResult(mermaid_code="gantt", provider="ollama", diagram_type="gantt")

        monkeypatch.setattr(cli, "generate_diagram", fake_generate)
        output = tmp_path / "out.mmd"

        with pytest.raises(SystemExit):
            cli.main(["generate", "plan", "-o", str(output)])

        assert output.read_text() == "gantt\n"

    def test_generate_error_exit_code(self, monkeypatch, capsys):
        async def fake_generate(description, settings):
            raise BackendError("Ollama generation failed: connection refused", provider="ollama")

        monkeypatch.setattr(cli, "generate_diagram", fake_generate)

        with pytest.raises(SystemExit) as exc_info:
            cli.main(["generate", "anything"])

        assert exc_info.value.code == 1
        assert "connection refused" in capsys.readouterr().err

    def test_export(self, monkeypatch, tmp_path, counting_sandbox):
        monkeypatch.setattr(cli, "RenderExporter", lambda: RenderExporter(sandbox_factory=counting_sandbox))
        source = tmp_path / "diagram.mmd"
        source.write_text("graph TD\nA-->B")
        output = tmp_path / "diagram.png"

        with pytest.raises(SystemExit) as exc_info:
            cli.main(["export", str(source), "--format", "png", "-o", str(output)])

        assert exc_info.value.code == 0
        assert output.read_bytes().startswith(b"\x89PNG")
        assert counting_sandbox.acquired == 1

    def test_generate_with_array_settings_file(self, tmp_path, capsys):
        path = tmp_path / "settings.json"
        path.write_text("[]")

        with pytest.raises(SystemExit) as exc_info:
            cli.main(["generate", "anything", "--settings", str(path)])

        assert exc_info.value.code == 1
        assert "JSON object" in capsys.readouterr().err

    def test_export_missing_file(self, tmp_path, capsys):
        with pytest.raises(SystemExit) as exc_info:
            cli.main(["export", str(tmp_path / "missing.mmd")])
        assert exc_info.value.code == 1
