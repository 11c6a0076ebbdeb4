import json

from photoedit.models.settings_model import EditorSettings
from photoedit.services.settings_service import SettingsService


class TestSettingsService:
    def test_missing_file_gives_defaults(self, tmp_path):
        settings = SettingsService(tmp_path / "settings.json").load()
        assert settings == EditorSettings()
        assert not settings.ai_enabled

    def test_save_and_load(self, tmp_path):
        service = SettingsService(tmp_path / "nested" / "settings.json")
        saved = EditorSettings(api_key="k", api_provider="local", local_model_path="/m", local_model_type="ONNX")
        service.save(saved)
        assert service.load() == saved

    def test_browser_style_keys(self, tmp_path):
        service = SettingsService(tmp_path / "settings.json")
        service.save(EditorSettings(api_key="k"))
        data = json.loads(service.path.read_text(encoding="utf-8"))
        assert data == {"apiKey": "k", "apiProvider": "openai", "localModelPath": "", "localModelType": "general"}

    def test_partial_file(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text(json.dumps({"localModelPath": "/models/x", "extra": 1}), encoding="utf-8")
        settings = SettingsService(path).load()
        assert settings.local_model_path == "/models/x"
        assert settings.api_provider == "openai"
        assert settings.ai_enabled

    def test_corrupt_file_gives_defaults(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text("{not json", encoding="utf-8")
        assert SettingsService(path).load() == EditorSettings()

    def test_non_object_file_gives_defaults(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text("[1, 2]", encoding="utf-8")
        assert SettingsService(path).load() == EditorSettings()

    def test_environment_key_fills_empty_key(self, tmp_path, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "from-env")
        assert SettingsService(tmp_path / "settings.json").load().api_key == "from-env"

    def test_stored_key_wins_over_environment(self, tmp_path, monkeypatch):
        service = SettingsService(tmp_path / "settings.json")
        service.save(EditorSettings(api_key="stored"))
        monkeypatch.setenv("OPENAI_API_KEY", "from-env")
        assert service.load().api_key == "stored"

    def test_path_from_environment(self, tmp_path, monkeypatch):
        monkeypatch.setenv("PHOTOEDIT_SETTINGS", str(tmp_path / "custom.json"))
        assert SettingsService().path == tmp_path / "custom.json"
