"""
HTTP contract tests for the analysis endpoint.

Covers the success envelope, the lenient body handling, method and size
rejections, CORS, request IDs, Unicode output and the metrics wiring.
"""

import base64
import logging

import pytest

from textforensics.core.capabilities import Capabilities
from textforensics.core.limits import AnalysisLimits
from textforensics.utils.config_schema import AnalyzerFileConfig


class TestAnalyze:
    """POST /api/analyze and its alias."""

    @pytest.mark.parametrize("path", ["/api/analyze", "/analyze"])
    def test_success_envelope(self, client, path):
        response = client.post(path, json={"text": "admin\u202e", "selected": ["unicode_bidi"]})

        assert response.status_code == 200
        body = response.json()
        assert body["ok"] is True
        assert body["meta"]["unicode_db_available"] is True
        assert set(body["server"]) == {"unicode_scan", "bidi_pairing"}
        assert body["server"]["bidi_pairing"]["issues"][0]["issue"] == "unclosed_open"

    def test_unknown_checks_are_ignored(self, client):
        body = client.post("/api/analyze", json={"text": "abc", "selected": ["entropy"]}).json()
        assert body["server"] == {}

    @pytest.mark.parametrize("content", [b"", b"not json", b"[1, 2]", b'"text"'])
    def test_malformed_bodies_are_empty_requests(self, client, content):
        response = client.post(
            "/api/analyze", content=content, headers={"Content-Type": "application/json"}
        )

        assert response.status_code == 200
        assert response.json()["server"] == {}

    @pytest.mark.parametrize("content", [b"[" * 200000, b'{"text": ' + b"[" * 200000])
    def test_deeply_nested_bodies_are_empty_requests(self, client, content):
        """Nesting past the decoder's recursion limit is not a server error."""
        response = client.post(
            "/api/analyze", content=content, headers={"Content-Type": "application/json"}
        )

        body = response.json()
        assert response.status_code == 200
        assert body["ok"] is True
        assert body["server"] == {}

    def test_unicode_is_not_escaped(self, client):
        secret = "Gr\u00fc\u00dfe aus M\u00fcnchen, alles gut!"
        encoded = base64.b64encode(secret.encode()).decode()

        response = client.post(
            "/api/analyze", json={"text": encoded, "selected": ["payload_base64"]}
        )

        assert secret.encode() in response.content
        assert response.json()["server"]["base64"][0]["preview"] == secret

    def test_degraded_capabilities(self, make_client):
        client = make_client(capabilities=Capabilities())
        body = client.post(
            "/api/analyze", json={"text": "\uff11", "selected": ["unicode_homoglyph", "unicode_norm"]}
        ).json()

        assert body["meta"]["confusable_engine_available"] is False
        assert body["server"]["spoof_tokens"] == {
            "available": False,
            "scanned_count": 0,
            "suspicious_count": 0,
            "suspicious": [],
        }
        assert body["server"]["normalization"]["available"] is False


class TestMaskUrlsDefault:
    """The configured mask_urls default applies when the body has no settings."""

    TEXT = "https://example.com/#SGVsbG8sIFVsaSE"

    @pytest.fixture
    def unmasking_client(self, make_client):
        return make_client(
            analyzer_config=AnalyzerFileConfig(
                limits=AnalysisLimits(min_base64_length=12), mask_urls=False
            )
        )

    def test_config_default(self, unmasking_client):
        body = unmasking_client.post(
            "/api/analyze", json={"text": self.TEXT, "selected": ["payload_base64"]}
        ).json()
        assert len(body["server"]["base64"]) == 1

    def test_request_settings_win(self, unmasking_client):
        body = unmasking_client.post(
            "/api/analyze",
            json={"text": self.TEXT, "selected": ["payload_base64"], "settings": {"maskUrls": True}},
        ).json()
        assert body["server"]["base64"] == []


class TestRejections:
    """Errors raised by the HTTP glue use the ok:false envelope."""

    @pytest.mark.parametrize("method", ["GET", "PUT", "DELETE"])
    def test_method_not_allowed(self, client, method):
        response = client.request(method, "/api/analyze")

        assert response.status_code == 405
        body = response.json()
        assert body["ok"] is False
        assert body["error"] == "Use POST JSON"
        assert body["detail"]["code"] == "method_not_allowed"

    def test_options_returns_ok(self, client):
        response = client.options("/api/analyze")

        assert response.status_code == 200
        assert response.json() == {"ok": True}

    def test_body_too_large(self, runtime_config, make_client):
        runtime_config.security.max_body_bytes = 64
        client = make_client()

        response = client.post("/api/analyze", json={"text": "x" * 200})

        assert response.status_code == 413
        body = response.json()
        assert body["ok"] is False
        assert body["detail"]["code"] == "payload_too_large"
        assert body["detail"]["details"] == {"limit": 64}

    def test_rejections_are_logged(self, runtime_config, make_client, caplog):
        runtime_config.security.max_body_bytes = 64
        client = make_client()

        with caplog.at_level(logging.INFO, logger="textforensics.api.app"):
            client.get("/api/analyze")
            client.post("/api/analyze", json={"text": "x" * 200})

        rejected = [r for r in caplog.records if getattr(r, "event_type", None) == "request_rejected"]
        assert [r.metrics["status_code"] for r in rejected] == [405, 413]
        assert [r.getMessage() for r in rejected] == [
            "Request rejected: method_not_allowed",
            "Request rejected: payload_too_large",
        ]

    def test_unknown_path_is_plain_404(self, client):
        assert client.get("/nope").status_code == 404

    def test_internal_error(self, make_client):
        def broken_normalizer(form, text):
            raise RuntimeError("normalizer crashed")

        client = make_client(
            capabilities=Capabilities(normalizer=broken_normalizer),
            raise_server_exceptions=False,
        )
        response = client.post("/api/analyze", json={"text": "x", "selected": ["unicode_norm"]})

        assert response.status_code == 500
        body = response.json()
        assert body["ok"] is False
        assert body["detail"]["code"] == "internal_error"
        assert "crashed" not in response.text


class TestHeaders:
    def test_cors_on_post(self, client):
        response = client.post(
            "/api/analyze", json={}, headers={"Origin": "https://tool.example"}
        )
        assert response.headers["access-control-allow-origin"] == "*"

    def test_cors_preflight(self, client):
        response = client.options(
            "/api/analyze",
            headers={
                "Origin": "https://tool.example",
                "Access-Control-Request-Method": "POST",
                "Access-Control-Request-Headers": "Content-Type",
            },
        )

        assert response.status_code == 200
        assert "POST" in response.headers["access-control-allow-methods"]

    def test_restricted_origins(self, runtime_config, make_client):
        runtime_config.security.cors_origins = ["https://allowed.example"]
        client = make_client()

        response = client.post(
            "/api/analyze", json={}, headers={"Origin": "https://other.example"}
        )
        assert "access-control-allow-origin" not in response.headers

    def test_request_id_is_echoed(self, client):
        response = client.post("/api/analyze", json={}, headers={"X-Request-ID": "req-42"})
        assert response.headers["X-Request-ID"] == "req-42"

    def test_request_id_is_generated(self, client):
        assert client.post("/api/analyze", json={}).headers["X-Request-ID"]


class TestMetricsWiring:
    def test_analysis_is_counted(self, client):
        client.post("/api/analyze", json={"text": "a\u202e", "selected": ["unicode_bidi"]})
        client.get("/api/analyze")

        text = client.get("/health/metrics").text
        assert 'textforensics_analyses_total{check="bidi_pairing"} 1.0' in text
        assert 'textforensics_findings_total{check="bidi_pairing"} 1.0' in text
        assert 'textforensics_requests_rejected_total{reason="method_not_allowed"} 1.0' in text

    def test_metrics_disabled(self, runtime_config, make_client):
        runtime_config.observability.metrics_enabled = False
        client = make_client()

        assert client.post("/api/analyze", json={}).status_code == 200
        assert client.get("/health/metrics").status_code == 404


pytestmark = pytest.mark.integration
