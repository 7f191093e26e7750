"""Tests for POST /archive and /archive/batch."""


class TestArchiveRoute:
    def test_creates_then_reports_duplicate(self, client, archive_body, vector_store):
        first = client.post("/archive", json=archive_body())
        second = client.post("/archive", json=archive_body())

        assert first.status_code == 200
        assert first.json() == {"created": True, "messageId": "m1"}
        assert second.status_code == 200
        assert second.json() == {"created": False, "messageId": "m1"}
        assert len(vector_store.rows) == 1

    def test_attachments_accepted(self, client, archive_body, vector_store):
        body = archive_body(
            attachments=[{"id": 99, "filename": "notes.pdf", "contentType": "application/pdf", "size": 12}]
        )
        response = client.post("/archive", json=body)

        assert response.status_code == 200
        stored = vector_store.rows[("g1", "m1")]
        assert stored.attachments[0].id == "99"

    def test_missing_field_is_validation_error(self, client, archive_body):
        body = archive_body()
        del body["content"]

        response = client.post("/archive", json=body)

        assert response.status_code == 422
        data = response.json()
        assert data["error_type"] == "validation"
        assert data["retryable"] is False
        assert "content" in data["detail"]

    def test_blank_content_rejected(self, client, archive_body):
        response = client.post("/archive", json=archive_body(content="   "))
        assert response.status_code == 422
        assert response.json()["error_type"] == "validation"

    def test_permission_denied(self, client, archive_body):
        client.post(
            "/admin/settings",
            json={"tenantId": "g1", "canArchiveRoleIds": ["archivist"]},
        )

        response = client.post(
            "/archive",
            json=archive_body(actorId="u1", actorRoleIds=["member"]),
        )

        assert response.status_code == 403
        assert response.json()["error_type"] == "permission_denied"

    def test_provider_outage_is_retryable(self, client, archive_body, fake_provider):
        fake_provider.embed_error = ConnectionError("provider down")

        response = client.post("/archive", json=archive_body())

        assert response.status_code == 503
        data = response.json()
        assert data["error_type"] == "provider_unavailable"
        assert data["retryable"] is True


class TestArchiveBatchRoute:
    def test_batch(self, client, archive_body):
        body = {
            "records": [
                archive_body(message_id="m1", content="thread start"),
                archive_body(message_id="m2", content="thread reply"),
                archive_body(message_id="m1", content="thread start"),
            ]
        }

        response = client.post("/archive/batch", json=body)

        assert response.status_code == 200
        data = response.json()
        assert data["created"] == 2
        assert [r["created"] for r in data["results"]] == [True, True, False]

    def test_empty_batch_rejected(self, client):
        response = client.post("/archive/batch", json={"records": []})
        assert response.status_code == 422
