from __future__ import annotations


def test_docs_swagger_ui(client):
    response = client.get("/api/docs/")
    assert response.status_code == 200
    assert b"Swagger" in response.data


def test_openapi_spec_lists_endpoints(client):
    response = client.get("/api/docs/openapi.json")
    assert response.status_code == 200
    data = response.get_json()
    assert data["info"]["title"] == "Drupal Frontend API"
    assert "/api/health" in data["paths"]
    assert "/api/revalidate" in data["paths"]
    assert set(data["paths"]["/api/revalidate"]) >= {"get", "post"}
