import pytest
import requests

from photoedit.errors import ProcessingError
from photoedit.models.settings_model import EditorSettings
from photoedit.services.ai_service import AIGateway


class FakeResponse:
    def __init__(self, status_code=200, payload=None):
        self.status_code = status_code
        self._payload = payload if payload is not None else {}

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Server Error")

    def json(self):
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload


class FakeHttp:
    def __init__(self, response=None, error=None):
        self.response = response or FakeResponse(payload={"choices": [{"message": {"content": "looks fine"}}]})
        self.error = error
        self.requests = []

    def post(self, url, headers=None, json=None, timeout=None):
        self.requests.append({"url": url, "headers": headers, "json": json, "timeout": timeout})
        if self.error is not None:
            raise self.error
        return self.response


def gateway(http, **settings):
    return AIGateway(EditorSettings(**settings), base_url="https://ai.example/v1/", timeout=5, http=http)


class TestProcess:
    def test_requires_api_key(self):
        http = FakeHttp()
        with pytest.raises(ProcessingError, match="API"):
            gateway(http).process("aGVsbG8=", "remove the car", "removeObject")
        assert http.requests == []

    def test_returns_original_image(self):
        http = FakeHttp()
        result = gateway(http, api_key="secret").process(
            "data:image/png;base64,aGVsbG8=", "remove the car", "removeObject"
        )
        assert result == "aGVsbG8="
        sent = http.requests[0]
        assert sent["url"] == "https://ai.example/v1/chat/completions"
        assert sent["headers"]["Authorization"] == "Bearer secret"
        assert sent["timeout"] == 5
        content = sent["json"]["messages"][0]["content"]
        assert "remove the car" in content[0]["text"]
        assert content[1]["image_url"]["url"].endswith("base64,aGVsbG8=")

    def test_unknown_operation(self):
        with pytest.raises(ProcessingError):
            gateway(FakeHttp(), api_key="secret").process("aGVsbG8=", "x", "colorize")

    def test_local_provider_skips_network(self):
        http = FakeHttp()
        gw = gateway(http, api_provider="local", local_model_path="/models/m.onnx", local_model_type="REMBG")
        assert gw.process("aGVsbG8=", "cut out", "changeBackground") == "aGVsbG8="
        assert http.requests == []

    def test_http_error(self):
        http = FakeHttp(response=FakeResponse(status_code=500))
        with pytest.raises(ProcessingError):
            gateway(http, api_key="secret").process("aGVsbG8=", "x", "enhance")

    def test_timeout(self):
        http = FakeHttp(error=requests.exceptions.Timeout("slow"))
        with pytest.raises(ProcessingError):
            gateway(http, api_key="secret").process("aGVsbG8=", "x", "enhance")

    def test_connection_error(self):
        http = FakeHttp(error=requests.exceptions.ConnectionError("offline"))
        with pytest.raises(ProcessingError):
            gateway(http, api_key="secret").process("aGVsbG8=", "x", "enhance")


class TestChat:
    def test_chat_returns_text(self):
        http = FakeHttp()
        assert gateway(http, api_key="secret").chat("hi") == "looks fine"
        content = http.requests[0]["json"]["messages"][0]["content"]
        assert len(content) == 1

    def test_chat_with_image_context(self):
        http = FakeHttp()
        gateway(http, api_key="secret").chat("what is this?", "aGVsbG8=")
        content = http.requests[0]["json"]["messages"][0]["content"]
        assert content[1]["type"] == "image_url"

    def test_empty_message(self):
        with pytest.raises(ProcessingError):
            gateway(FakeHttp(), api_key="secret").chat("   ")

    def test_malformed_response(self):
        http = FakeHttp(response=FakeResponse(payload={"unexpected": True}))
        with pytest.raises(ProcessingError):
            gateway(http, api_key="secret").chat("hi")

    def test_invalid_json(self):
        http = FakeHttp(response=FakeResponse(payload=ValueError("no json")))
        with pytest.raises(ProcessingError):
            gateway(http, api_key="secret").chat("hi")
