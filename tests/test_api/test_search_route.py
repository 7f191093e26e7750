"""Tests for POST /search."""


def _seed(client, archive_body, count=3):
    for i in range(1, count + 1):
        client.post("/archive", json=archive_body(message_id=f"m{i}", content="release notes"))


class TestSearchRoute:
    def test_returns_ranked_results(self, client, archive_body):
        client.post("/archive", json=archive_body())

        response = client.post("/search", json={"tenantId": "g1", "query": "release notes"})

        assert response.status_code == 200
        data = response.json()
        assert data["nextCursor"] is None
        result = data["results"][0]
        assert result["id"] == "m1"
        assert result["authorId"] == "u1"
        assert result["channelId"] == "c1"
        assert result["score"] > 0
        assert "createdAt" in result

    def test_empty_result_is_not_an_error(self, client):
        response = client.post("/search", json={"tenantId": "g1", "query": "nothing archived"})
        assert response.status_code == 200
        assert response.json() == {"results": [], "nextCursor": None}

    def test_cursor_pagination(self, client, archive_body):
        _seed(client, archive_body, count=3)

        first = client.post("/search", json={"tenantId": "g1", "query": "release notes", "limit": 2}).json()
        assert [r["id"] for r in first["results"]] == ["m1", "m2"]
        assert first["nextCursor"]

        second = client.post(
            "/search",
            json={"tenantId": "g1", "query": "release notes", "limit": 2, "cursor": first["nextCursor"]},
        ).json()
        assert [r["id"] for r in second["results"]] == ["m3"]
        assert second["nextCursor"] is None

    def test_filter_by_channel(self, client, archive_body):
        client.post("/archive", json=archive_body(message_id="m1", channelId="c1"))
        client.post("/archive", json=archive_body(message_id="m2", channelId="c2"))

        response = client.post(
            "/search",
            json={"tenantId": "g1", "query": "release notes", "filter": {"channelId": "c2"}},
        )

        assert [r["id"] for r in response.json()["results"]] == ["m2"]

    def test_inverted_time_range(self, client):
        response = client.post(
            "/search",
            json={
                "tenantId": "g1",
                "query": "release notes",
                "filter": {"after": "2026-02-01T00:00:00Z", "before": "2026-01-01T00:00:00Z"},
            },
        )
        assert response.status_code == 422
        assert response.json()["error_type"] == "validation"

    def test_limit_out_of_range(self, client):
        response = client.post("/search", json={"tenantId": "g1", "query": "q", "limit": 500})
        assert response.status_code == 422

    def test_foreign_cursor(self, client, archive_body):
        _seed(client, archive_body, count=2)
        first = client.post("/search", json={"tenantId": "g1", "query": "release notes", "limit": 1}).json()

        response = client.post(
            "/search",
            json={"tenantId": "g1", "query": "other query", "cursor": first["nextCursor"]},
        )

        assert response.status_code == 422
        assert "does not belong" in response.json()["detail"]
