GENERAL_ANSWERS = {
    "general-1": "La sinceridad",
    "general-2": "Madrugar",
    "general-3": "Tiempo de calidad",
    "general-4": ["Confianza", "Humor", "Pasión", "Comunicación"],
    "general-5": "Un paseo al atardecer",
}


def connect(client, register):
    ana, ana_h = register("Ana", ["rock", "viajes"])
    bruno, bruno_h = register("Bruno", ["jazz", "cine"])
    connection_id = client.post("/api/connections", json={"targetUserId": bruno["id"]}, headers=ana_h).json()["id"]
    r = client.post(f"/api/connections/{connection_id}/accept", headers=bruno_h)
    assert r.json()["status"] == "ACTIVE"
    return connection_id, ana_h, bruno_h


def answer_all(client, connection_id, headers_list, answers=GENERAL_ANSWERS):
    last = None
    for headers in headers_list:
        for question_id, response in answers.items():
            last = client.post(
                f"/api/nucleus/{connection_id}/questions/{question_id}/answer",
                json={"response": response}, headers=headers,
            )
            assert last.status_code == 200, last.text
    return last.json()


def test_overview_lists_shared_categories(client, register):
    connection_id, ana_h, _ = connect(client, register)
    r = client.get(f"/api/nucleus/{connection_id}", headers=ana_h)
    assert r.status_code == 200
    body = r.json()
    categories = [c["category"] for c in body["sections"]["questions"]["categories"]]
    assert categories == ["musica", "general"]
    assert body["connection"]["progress"] == 0
    assert body["sections"]["places"]["enabled"] is False
    assert [g["type"] for g in body["sections"]["games"]["games"]] == [
        "GUESS_ANSWER", "COMPLETE_PHRASE", "TRUTH_OR_LIE",
    ]


def test_answer_reveal_after_both(client, register):
    connection_id, ana_h, bruno_h = connect(client, register)
    url = f"/api/nucleus/{connection_id}/questions/general-2/answer"
    r = client.post(url, json={"response": "Madrugar"}, headers=ana_h)
    assert r.json()["bothCompleted"] is False

    questions = client.get(f"/api/nucleus/{connection_id}/questions/general", headers=bruno_h).json()["questions"]
    q2 = next(q for q in questions if q["id"] == "general-2")
    assert q2["otherAnswered"] is True
    assert q2["otherResponse"] is None

    r = client.post(url, json={"response": "Trasnochar"}, headers=bruno_h)
    assert r.json()["bothCompleted"] is True
    assert r.json()["progress"] == 14

    questions = client.get(f"/api/nucleus/{connection_id}/questions/general", headers=bruno_h).json()["questions"]
    q2 = next(q for q in questions if q["id"] == "general-2")
    assert q2["otherResponse"] == "Madrugar"

    history = client.get(f"/api/nucleus/{connection_id}/history", headers=ana_h).json()
    assert history[0]["category"] == "general"
    assert history[0]["questions"][0]["otherResponse"] == "Trasnochar"


def test_answer_errors(client, register):
    connection_id, ana_h, _ = connect(client, register)
    base = f"/api/nucleus/{connection_id}/questions"
    assert client.post(f"{base}/general-2/answer", json={"response": "Ambos"}, headers=ana_h).status_code == 422
    assert client.post(f"{base}/nope-1/answer", json={"response": "x"}, headers=ana_h).status_code == 404
    # cine is not shared by these profiles
    r = client.post(f"{base}/cine-2/answer", json={"response": "Cine"}, headers=ana_h)
    assert r.status_code == 422
    client.post(f"{base}/general-2/answer", json={"response": "Madrugar"}, headers=ana_h)
    r = client.post(f"{base}/general-2/answer", json={"response": "Madrugar"}, headers=ana_h)
    assert r.status_code == 409
    assert r.json()["code"] == "DUPLICATE_SUBMISSION"


def test_outsider_cannot_read_nucleus(client, register):
    connection_id, _, _ = connect(client, register)
    _, carla_h = register("Carla")
    r = client.get(f"/api/nucleus/{connection_id}", headers=carla_h)
    assert r.status_code == 403
    assert client.get("/api/nucleus/missing", headers=carla_h).status_code == 404


def test_photo_and_voice_validation(client, register):
    connection_id, ana_h, _ = connect(client, register)
    r = client.post(f"/api/nucleus/{connection_id}/photos", json={"photoUrl": "not-a-url"}, headers=ana_h)
    assert r.status_code == 422
    r = client.post(
        f"/api/nucleus/{connection_id}/voice",
        json={"audioUrl": "https://cdn.example.com/a.ogg", "duration": -1}, headers=ana_h,
    )
    assert r.status_code == 422


def test_full_nucleus_unlocks_chat_and_completes(client, register):
    connection_id, ana_h, bruno_h = connect(client, register)
    both = [ana_h, bruno_h]

    result = answer_all(client, connection_id, both)
    assert result["progress"] == 70
    assert result["chatLevel"] == "LIMITED"

    # LIMITED chat: text only
    r = client.post(f"/api/messages/{connection_id}", json={"content": "¡Hola!"}, headers=ana_h)
    assert r.status_code == 201
    r = client.post(
        f"/api/messages/{connection_id}", json={"content": "https://img/x.jpg", "type": "IMAGE"}, headers=ana_h,
    )
    assert r.status_code == 403

    for headers in both:
        client.post(f"/api/nucleus/{connection_id}/photos", json={"photoUrl": "https://img.example.com/p.jpg"}, headers=headers)
    for headers in both:
        r = client.post(
            f"/api/nucleus/{connection_id}/voice",
            json={"audioUrl": "https://cdn.example.com/v.ogg", "duration": 12.5}, headers=headers,
        )
    assert r.json()["progress"] == 90

    play_all_games(client, connection_id, ana_h, bruno_h)
    overview = client.get(f"/api/nucleus/{connection_id}", headers=ana_h).json()
    assert overview["connection"]["progress"] == 95
    assert overview["sections"]["games"]["progress"] == 3

    suggestion = client.post(
        f"/api/places/{connection_id}/suggest", json={"name": "Café Central", "placeId": "p-1"}, headers=ana_h,
    ).json()
    client.post(f"/api/places/suggestions/{suggestion['id']}/vote", json={"vote": "LOVE"}, headers=ana_h)
    r = client.post(f"/api/places/suggestions/{suggestion['id']}/vote", json={"vote": "LOVE"}, headers=bruno_h)
    assert r.json()["agreed"] is True
    assert r.json()["progress"] == 100

    connection = client.get(f"/api/connections/{connection_id}", headers=ana_h).json()
    assert connection["status"] == "COMPLETED"
    assert connection["chatLevel"] == "UNLIMITED"
    r = client.post(
        f"/api/messages/{connection_id}", json={"content": "https://img/x.jpg", "type": "IMAGE"}, headers=ana_h,
    )
    assert r.status_code == 201


def play_all_games(client, connection_id, ana_h, bruno_h):
    base = f"/api/nucleus/{connection_id}/games"

    game = client.post(f"{base}/TRUTH_OR_LIE/start", headers=ana_h).json()
    for headers in (ana_h, bruno_h):
        r = client.post(
            f"{base}/{game['gameId']}/truth-or-lie",
            json={"statements": ["Sé tocar la guitarra", "He vivido en Roma", "Nunca he visto el mar"]},
            headers=headers,
        )
        assert r.status_code == 200, r.text
    for headers in (ana_h, bruno_h):
        r = client.post(f"{base}/{game['gameId']}/guess-lie", json={"guess": "Nunca he visto el mar"}, headers=headers)
        assert r.json()["correct"] is True

    game = client.post(f"{base}/GUESS_ANSWER/start", headers=bruno_h).json()
    answers = {"ga-1": "Hacer deporte", "ga-2": "Ciudad europea", "ga-3": "El ruido"}
    for headers in (ana_h, bruno_h):
        client.post(f"{base}/{game['gameId']}/ga-fill", json={"answers": answers}, headers=headers)
    for headers in (ana_h, bruno_h):
        r = client.post(f"{base}/{game['gameId']}/guess-answer", json={"answers": answers}, headers=headers)
        assert r.json()["score"] == 3

    game = client.post(f"{base}/COMPLETE_PHRASE/start", headers=ana_h).json()
    phrases = ["escuchar", "una excursión", "un café"]
    for headers in (ana_h, bruno_h):
        client.post(f"{base}/{game['gameId']}/complete-phrase", json={"answers": phrases}, headers=headers)
    for headers in (ana_h, bruno_h):
        r = client.post(f"{base}/{game['gameId']}/vote-phrases", json={"votes": [True, False, True]}, headers=headers)
    assert r.json()["gameCompleted"] is True
