import config


def test_unlock_requires_pin(client):
    for body in ({}, {"pin": ""}, {"pin": "   "}):
        response = client.post("/api/spoc/unlock", json=body)
        assert response.status_code == 400
        assert response.json()["detail"] == "PIN required"


def test_unlock_with_shared_pin(client, session_store):
    response = client.post("/api/spoc/unlock", json={"pin": config.SPOC_PIN})
    assert response.status_code == 200
    data = response.json()
    assert data["method"] == "pin"
    assert data["expiresIn"] == config.SPOC_TOKEN_TTL_SECONDS
    assert "spocId" not in data

    session = session_store.get(data["token"])
    assert session is not None
    assert session.spoc_id is None


def test_unlock_with_spoc_id(client, session_store):
    response = client.post("/api/spoc/unlock", json={"pin": "  spoc-anita "})
    assert response.status_code == 200
    data = response.json()
    assert data["method"] == "spocId"
    assert data["spocId"] == "spoc-anita"
    assert data["expiresIn"] == config.SPOC_TOKEN_TTL_SECONDS
    assert session_store.get(data["token"]).spoc_id == "spoc-anita"


def test_padded_shared_pin_is_treated_as_spoc_id(client, session_store):
    response = client.post("/api/spoc/unlock", json={"pin": f" {config.SPOC_PIN}"})
    assert response.status_code == 200
    data = response.json()
    assert data["method"] == "spocId"
    assert data["spocId"] == config.SPOC_PIN
    assert session_store.get(data["token"]).spoc_id == config.SPOC_PIN


def test_unlock_accepts_numeric_pin(client):
    response = client.post("/api/spoc/unlock", json={"pin": 4242})
    assert response.status_code == 200
    assert response.json()["spocId"] == "4242"


def test_unlock_issues_distinct_tokens(client):
    first = client.post("/api/spoc/unlock", json={"pin": "spoc-anita"}).json()
    second = client.post("/api/spoc/unlock", json={"pin": "spoc-anita"}).json()
    assert first["token"] != second["token"]


def test_validate_token(client):
    token = client.post("/api/spoc/unlock", json={"pin": "spoc-ravi"}).json()["token"]

    response = client.get("/api/spoc/validate", headers={"x-spoc-token": token})
    assert response.status_code == 200
    assert response.json() == {"ok": True, "spocId": "spoc-ravi"}


def test_validate_pin_session_has_no_spoc_id(client):
    token = client.post("/api/spoc/unlock", json={"pin": config.SPOC_PIN}).json()["token"]

    response = client.get("/api/spoc/validate", headers={"x-spoc-token": token})
    assert response.json() == {"ok": True}


def test_validate_rejects_missing_and_unknown_tokens(client):
    assert client.get("/api/spoc/validate").status_code == 403
    assert client.get("/api/spoc/validate", headers={"x-spoc-token": "nope"}).status_code == 403


def test_validate_rejects_expired_token(client, clock):
    token = client.post("/api/spoc/unlock", json={"pin": "spoc-ravi"}).json()["token"]

    clock.advance(config.SPOC_TOKEN_TTL_SECONDS)
    assert client.get("/api/spoc/validate", headers={"x-spoc-token": token}).status_code == 200

    clock.advance(1)
    assert client.get("/api/spoc/validate", headers={"x-spoc-token": token}).status_code == 403
