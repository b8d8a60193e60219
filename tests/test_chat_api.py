from app.core.redis import messages_limiter


def active_pair(client, register):
    ana, ana_h = register("Ana")
    bruno, bruno_h = register("Bruno")
    connection_id = client.post("/api/connections", json={"targetUserId": bruno["id"]}, headers=ana_h).json()["id"]
    client.post(f"/api/connections/{connection_id}/accept", headers=bruno_h)
    return connection_id, ana_h, bruno_h


def reach_limited_chat(client, connection_id, headers_list):
    answers = {
        "general-1": "La sinceridad",
        "general-2": "Madrugar",
        "general-3": "Regalos",
        "general-5": "Un picnic",
        "musica-2": "Concierto",
    }
    for headers in headers_list:
        for question_id, response in answers.items():
            r = client.post(
                f"/api/nucleus/{connection_id}/questions/{question_id}/answer",
                json={"response": response}, headers=headers,
            )
            assert r.status_code == 200, r.text


def test_chat_locked_until_70(client, register):
    connection_id, ana_h, _ = active_pair(client, register)
    r = client.post(f"/api/messages/{connection_id}", json={"content": "hola"}, headers=ana_h)
    assert r.status_code == 403
    assert r.json()["code"] == "CHAT_LOCKED"


def test_send_list_and_unread(client, register):
    connection_id, ana_h, bruno_h = active_pair(client, register)
    reach_limited_chat(client, connection_id, [ana_h, bruno_h])

    r = client.post(f"/api/messages/{connection_id}", json={"content": "  hola  "}, headers=ana_h)
    assert r.status_code == 201
    assert r.json()["content"] == "hola"
    assert r.json()["isMine"] is True

    assert client.get("/api/messages/unread", headers=bruno_h).json()["count"] == 1
    messages = client.get(f"/api/messages/{connection_id}", headers=bruno_h).json()
    assert [m["content"] for m in messages] == ["hola"]
    assert messages[0]["isMine"] is False
    assert client.get("/api/messages/unread", headers=bruno_h).json()["count"] == 0


def test_limited_chat_rejects_long_text(client, register):
    connection_id, ana_h, bruno_h = active_pair(client, register)
    reach_limited_chat(client, connection_id, [ana_h, bruno_h])
    r = client.post(f"/api/messages/{connection_id}", json={"content": "x" * 501}, headers=ana_h)
    assert r.status_code == 422


def test_outsider_cannot_read_messages(client, register):
    connection_id, _, _ = active_pair(client, register)
    _, carla_h = register("Carla")
    assert client.get(f"/api/messages/{connection_id}", headers=carla_h).status_code == 403


def test_messages_rate_limited(client, register, monkeypatch):
    connection_id, ana_h, bruno_h = active_pair(client, register)
    reach_limited_chat(client, connection_id, [ana_h, bruno_h])
    monkeypatch.setattr(messages_limiter, "limit", 2)
    codes = [
        client.post(f"/api/messages/{connection_id}", json={"content": f"m{i}"}, headers=ana_h).status_code
        for i in range(3)
    ]
    assert codes == [201, 201, 429]
