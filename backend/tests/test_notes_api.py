import pytest

HELLO = [{"type": "text", "content": "hello"}]
MISSING = "00000000-0000-0000-0000-000000000000"


@pytest.fixture()
def headers(user_headers):
    return user_headers()


def test_create_and_fetch_note(client, headers):
    r = client.post("/notes", headers=headers, json={"content": HELLO})
    assert r.status_code == 201
    note = r.json()["note"]
    assert note["userId"] == headers["X-User-Id"]
    assert note["content"] == HELLO
    assert note["createdAt"] == note["updatedAt"]

    r = client.get(f"/notes/{note['id']}", headers=headers)
    assert r.status_code == 200
    assert r.json()["note"] == note


def test_create_with_query_param_identity(client, make_user):
    user_id = make_user()["id"]
    r = client.post(f"/notes?userId={user_id}", json={"content": HELLO})
    assert r.status_code == 201
    r = client.get("/notes", params={"userId": user_id})
    assert [n["content"] for n in r.json()["notes"]] == [HELLO]


def test_unregistered_identity_is_401_and_stores_nothing(client, headers):
    r = client.post("/notes", headers={"X-User-Id": "ghost"}, json={"content": HELLO})
    assert r.status_code == 401
    assert client.get("/notes", headers={"X-User-Id": "ghost"}).status_code == 401
    assert client.get("/notes", headers=headers).json()["notes"] == []


def test_mixed_blocks_round_trip_in_order(client, headers):
    content = [
        {"type": "image", "src": "data:image/png;base64,iVBORw0KGgo="},
        {"type": "text", "content": "a photo"},
        {"type": "image", "src": "data:x", "url": "https://cdn.example/x.png", "fileKey": "x.png"},
    ]
    r = client.post("/notes", headers=headers, json={"content": content})
    note_id = r.json()["note"]["id"]

    r = client.get(f"/notes/{note_id}", headers=headers)
    assert r.json()["note"]["content"] == content


def test_invalid_content_is_400(client, headers):
    for body in ({"content": []}, {"content": [{"type": "bogus"}]}, {"content": "text"}, {}, [], HELLO, None):
        r = client.post("/notes", headers=headers, json=body)
        assert r.status_code == 400, body

    r = client.get("/notes", headers=headers)
    assert r.json()["notes"] == []


def test_malformed_json_body_is_400(client, headers):
    r = client.post(
        "/notes",
        headers={**headers, "Content-Type": "application/json"},
        content=b"{not json",
    )
    assert r.status_code == 400


def test_missing_identity_is_401_even_with_bad_content(client):
    assert client.post("/notes", json={"content": []}).status_code == 401
    assert client.post("/notes", json=[1, 2]).status_code == 401
    r = client.post("/notes", headers={"Content-Type": "application/json"}, content=b"{not json")
    assert r.status_code == 401
    r = client.put(f"/notes/{MISSING}", headers={"Content-Type": "application/json"}, content=b"{not json")
    assert r.status_code == 401


def test_list_is_newest_first(client, headers):
    ids = []
    for i in range(3):
        r = client.post("/notes", headers=headers, json={"content": [{"type": "text", "content": f"n{i}"}]})
        ids.append(r.json()["note"]["id"])

    r = client.get("/notes", headers=headers)
    assert r.status_code == 200
    notes = r.json()["notes"]
    assert len(notes) == 3
    assert [n["id"] for n in notes] == list(reversed(ids))


def test_search(client, headers):
    client.post("/notes", headers=headers, json={"content": [{"type": "text", "content": "Buy MILK"}]})
    client.post("/notes", headers=headers, json={"content": [{"type": "text", "content": "call mom"}]})

    r = client.get("/notes", headers=headers, params={"q": "milk"})
    assert [n["content"][0]["content"] for n in r.json()["notes"]] == ["Buy MILK"]


def test_update_replaces_content(client, headers):
    r = client.post("/notes", headers=headers, json={"content": HELLO})
    original = r.json()["note"]

    new_content = [{"type": "text", "content": "edited"}, {"type": "image", "src": "data:y"}]
    r = client.put(f"/notes/{original['id']}", headers=headers, json={"content": new_content})
    assert r.status_code == 200
    updated = r.json()["note"]
    assert updated["content"] == new_content
    assert updated["createdAt"] == original["createdAt"]
    assert updated["updatedAt"] >= original["updatedAt"]


def test_update_invalid_content_is_400(client, headers):
    note_id = client.post("/notes", headers=headers, json={"content": HELLO}).json()["note"]["id"]

    assert client.put(f"/notes/{note_id}", headers=headers, json={"content": []}).status_code == 400
    assert client.put(f"/notes/{note_id}", headers=headers, json=[]).status_code == 400
    assert client.get(f"/notes/{note_id}", headers=headers).json()["note"]["content"] == HELLO


def test_delete_then_get_is_404(client, headers):
    note_id = client.post("/notes", headers=headers, json={"content": HELLO}).json()["note"]["id"]

    r = client.delete(f"/notes/{note_id}", headers=headers)
    assert r.status_code == 200
    assert r.json()["message"]

    assert client.get(f"/notes/{note_id}", headers=headers).status_code == 404
    assert client.delete(f"/notes/{note_id}", headers=headers).status_code == 404


def test_unknown_note_is_404(client, headers):
    assert client.get(f"/notes/{MISSING}", headers=headers).status_code == 404
    assert client.put(f"/notes/{MISSING}", headers=headers, json={"content": HELLO}).status_code == 404
    assert client.delete(f"/notes/{MISSING}", headers=headers).status_code == 404


def test_malformed_note_id_is_404(client, headers):
    assert client.get("/notes/not-a-uuid", headers=headers).status_code == 404
    assert client.put("/notes/not-a-uuid", headers=headers, json={"content": HELLO}).status_code == 404
    assert client.delete("/notes/not-a-uuid", headers=headers).status_code == 404


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"ok": True}
