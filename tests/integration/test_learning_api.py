import pytest
from aiohttp.test_utils import TestClient, TestServer

from api.server import create_app
from conftest import make_coordinator


def make_app():
    return create_app(make_coordinator()[0], preload_model=False)


@pytest.mark.asyncio
async def test_languages():
    async with TestClient(TestServer(make_app())) as client:
        resp = await client.get("/api/languages")
        assert resp.status == 200
        body = await resp.json()
        assert body["languages"][0] == {"id": 1, "name": "Spanish", "code": "es", "wordCount": 3248}


@pytest.mark.asyncio
async def test_learning_a_word_scores_new_then_recap():
    async with TestClient(TestServer(make_app())) as client:
        resp = await client.post("/api/users", json={"username": "ana"})
        assert resp.status == 201
        user_id = (await resp.json())["user"]["id"]

        word = {"word": "Cup", "translation": "taza", "languageId": 1}
        first = await (await client.post(f"/api/users/{user_id}/words", json=word)).json()
        assert first["success"] is True
        assert (first["score"], first["level"]) == (10, 1)
        assert first["learnedWord"]["word"] == "Cup"

        second = await (await client.post(f"/api/users/{user_id}/words", json={**word, "word": "CUP"})).json()
        assert second["score"] == 15
        assert second["recap"] is True

        score = await (await client.get(f"/api/users/{user_id}/score")).json()
        assert score["userScore"]["score"] == 15

        words = await (await client.get(f"/api/users/{user_id}/words")).json()
        assert [w["word"] for w in words["learnedWords"]] == ["Cup", "CUP"]


@pytest.mark.asyncio
async def test_bad_ids_and_payloads():
    async with TestClient(TestServer(make_app())) as client:
        resp = await client.get("/api/users/abc/score")
        assert resp.status == 400
        assert (await resp.json())["message"] == "Invalid user ID"

        resp = await client.get("/api/users/42/score")
        assert resp.status == 404

        resp = await client.post("/api/users/1/words", json={"word": "", "translation": "x", "languageId": 1})
        assert resp.status == 400
        assert (await resp.json())["message"] == "Invalid word data"

        resp = await client.post("/api/users/1/words", data="not json", headers={"Content-Type": "application/json"})
        assert resp.status == 400

        resp = await client.post("/api/users", json={"username": "dup"})
        assert resp.status == 201
        resp = await client.post("/api/users", json={"username": "dup"})
        assert resp.status == 409


@pytest.mark.asyncio
async def test_vocabulary_lists():
    async with TestClient(TestServer(make_app())) as client:
        resp = await client.post("/api/users/1/vocabulary-lists", json={"name": "Kitchen"})
        assert resp.status == 201
        created = (await resp.json())["vocabularyList"]
        assert created["icon"] == "folder"
        list_id = created["id"]

        resp = await client.patch(f"/api/vocabulary-lists/{list_id}", json={"color": "#000000"})
        assert (await resp.json())["vocabularyList"]["color"] == "#000000"

        resp = await client.post(f"/api/vocabulary-lists/{list_id}/words", json={"wordId": 3, "notes": "n"})
        assert resp.status == 201
        entry = (await resp.json())["listWord"]

        resp = await client.patch(f"/api/vocabulary-list-words/{entry['id']}", json={"notes": "updated"})
        assert (await resp.json())["listWord"]["notes"] == "updated"

        words = await (await client.get(f"/api/vocabulary-lists/{list_id}/words")).json()
        assert [w["wordId"] for w in words["words"]] == [3]

        resp = await client.delete(f"/api/vocabulary-lists/{list_id}/words/3")
        assert resp.status == 200
        resp = await client.delete(f"/api/vocabulary-lists/{list_id}/words/3")
        assert resp.status == 404

        lists = await (await client.get("/api/users/1/vocabulary-lists")).json()
        assert len(lists["vocabularyLists"]) == 1

        assert (await client.delete(f"/api/vocabulary-lists/{list_id}")).status == 200
        assert (await client.get(f"/api/vocabulary-lists/{list_id}")).status == 404
        assert (await client.patch(f"/api/vocabulary-lists/{list_id}", json={"name": "x"})).status == 404
        assert (await client.post("/api/vocabulary-lists/x/words", json={"wordId": 1})).status == 400
