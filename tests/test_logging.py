import logging
import uuid

import pytest


class TestCorrelationIdMiddleware:
    def test_returns_provided_request_id(self, client):
        custom_id = "my-custom-request-id-123"
        response = client.get("/health", HTTP_X_REQUEST_ID=custom_id)
        assert response["X-Request-ID"] == custom_id

    def test_generates_uuid_when_no_request_id(self, client):
        response = client.get("/health")
        request_id = response["X-Request-ID"]
        parsed = uuid.UUID(request_id, version=4)
        assert str(parsed) == request_id

    def test_correlation_id_in_logs(self, client, caplog):
        custom_id = "log-test-correlation-456"
        with caplog.at_level(logging.INFO):
            client.get("/health", HTTP_X_REQUEST_ID=custom_id)
        found = any(custom_id in record.getMessage() for record in caplog.records)
        assert found, (
            f"correlation_id '{custom_id}' not found in log records: "
            f"{[r.getMessage() for r in caplog.records]}"
        )


class TestSensitiveDataMasking:
    def test_tax_id_masked_by_key(self):
        from config.settings import mask_sensitive_data

        event_dict = {"event": "test", "tax_id": "12-3456789"}
        result = mask_sensitive_data(None, None, event_dict)
        assert result["tax_id"] == "***MASKED***"

    def test_phone_masked_by_key(self):
        from config.settings import mask_sensitive_data

        event_dict = {"event": "test", "phone": "5550100200"}
        result = mask_sensitive_data(None, None, event_dict)
        assert result["phone"] == "***MASKED***"

    def test_tax_id_masked_inside_text(self):
        from config.settings import mask_sensitive_data

        event_dict = {"event": "test", "data": "customer tax_id=12-3456789 rejected"}
        result = mask_sensitive_data(None, None, event_dict)
        assert "12-3456789" not in result["data"]
        assert "rejected" in result["data"]

    def test_password_masked_in_log_output(self):
        from config.settings import mask_sensitive_data

        event_dict = {"event": "test", "data": "password='s3cret123'"}
        result = mask_sensitive_data(None, None, event_dict)
        assert "s3cret123" not in result["data"]
        assert "***MASKED***" in result["data"]

    def test_token_masked_in_log_output(self):
        from config.settings import mask_sensitive_data

        event_dict = {"event": "test", "header": "token=abc123xyz"}
        result = mask_sensitive_data(None, None, event_dict)
        assert "abc123xyz" not in result["header"]
        assert "***MASKED***" in result["header"]

    def test_non_sensitive_data_unchanged(self):
        from config.settings import mask_sensitive_data

        order_id = "01927c1e-7a5b-7cc1-9d1a-2f5e3c7b9a10"
        event_dict = {"event": "order.created", "order_id": order_id, "total": "41.00"}
        result = mask_sensitive_data(None, None, event_dict)
        assert result["order_id"] == order_id
        assert result["total"] == "41.00"
        assert result["event"] == "order.created"
