"""
Tests for request logging helpers and request id propagation.
"""

import json
import logging

from config.logging_config import JsonFormatter, RequestIdFilter
from middleware.logging_middleware import MASK, artifact_id_from_path, mask_sensitive


class TestMasking:

    def test_credentials_masked_recursively(self):
        data = {
            "username": "ada",
            "password": "hunter22",
            "nested": {"Authorization": "Bearer abc", "title": "ok"},
            "items": [{"token": "t"}, {"code": "<p/>"}],
        }
        masked = mask_sensitive(data)
        assert masked["username"] == "ada"
        assert masked["password"] == MASK
        assert masked["nested"] == {"Authorization": MASK, "title": "ok"}
        assert masked["items"] == [{"token": MASK}, {"code": "<p/>"}]

    def test_scalars_untouched(self):
        assert mask_sensitive("password") == "password"
        assert mask_sensitive(3) == 3


class TestArtifactIdFromPath:

    def test_artifact_paths(self):
        assert artifact_id_from_path("/api/artifacts/42") == 42
        assert artifact_id_from_path("/api/artifacts/7/like") == 7
        assert artifact_id_from_path("/api/artifacts/7/preview") == 7

    def test_other_paths(self):
        assert artifact_id_from_path("/api/artifacts") is None
        assert artifact_id_from_path("/api/auth/me") is None


class TestFormatting:

    def test_json_formatter_includes_context(self):
        record = logging.LogRecord("test", logging.INFO, __file__, 1, "hello %s", ("world",), None)
        record.status_code = 404
        record.artifact_id = 9
        RequestIdFilter().filter(record)

        payload = json.loads(JsonFormatter().format(record))
        assert payload["message"] == "hello world"
        assert payload["request_id"] == "-"
        assert payload["status_code"] == 404
        assert payload["artifact_id"] == 9


class TestRequestIdHeader:

    def test_generated_when_absent(self, http):
        first = http.get("/api/health").headers["X-Request-ID"]
        second = http.get("/api/health").headers["X-Request-ID"]
        assert first and second and first != second

    def test_incoming_id_reused(self, http):
        resp = http.get("/api/health", headers={"X-Request-ID": "trace-1234abcd"})
        assert resp.headers["X-Request-ID"] == "trace-1234abcd"

    def test_malformed_incoming_id_replaced(self, http):
        resp = http.get("/api/health", headers={"X-Request-ID": "bad id with spaces"})
        assert resp.headers["X-Request-ID"] != "bad id with spaces"
