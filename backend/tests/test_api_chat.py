from conftest import add_history, add_prompt
from promptdesk.services.errors import UpstreamError


def test_chat_turn_returns_assistant_reply(client, db, project, completer):
    add_prompt(db, project, "You are helpful")

    resp = client.post(f"/chat/{project.id}", json={"message": "Hi"})

    assert resp.status_code == 200
    assert resp.json() == {"role": "assistant", "content": "Hello from the model"}
    assert completer.calls[0] == [
        {"role": "system", "content": "You are helpful"},
        {"role": "user", "content": "Hi"},
    ]


def test_history_after_turn_lists_user_before_assistant(client, project):
    client.post(f"/chat/{project.id}", json={"message": "Hi"})

    resp = client.get(f"/chat/{project.id}/history")

    assert resp.status_code == 200
    messages = resp.json()["messages"]
    assert [(m["role"], m["content"]) for m in messages] == [
        ("user", "Hi"),
        ("assistant", "Hello from the model"),
    ]
    assert messages[0]["id"] < messages[1]["id"]
    assert "created_at" in messages[0]


def test_upstream_timeout_is_502_and_keeps_user_turn(client, project, completer):
    completer.error = UpstreamError("Completion endpoint timed out")

    resp = client.post(f"/chat/{project.id}", json={"message": "Hi"})

    assert resp.status_code == 502
    assert resp.json() == {"detail": "Completion endpoint timed out"}

    history = client.get(f"/chat/{project.id}/history").json()["messages"]
    assert [(m["role"], m["content"]) for m in history] == [("user", "Hi")]


def test_missing_message_is_400(client, project, completer):
    resp = client.post(f"/chat/{project.id}", json={})

    assert resp.status_code == 400
    assert resp.json() == {"detail": "Message is required"}
    assert completer.calls == []
    assert client.get(f"/chat/{project.id}/history").json() == {"messages": []}


def test_chat_on_foreign_project_is_404(client, db, other_user, completer):
    from promptdesk.db.models import Project

    foreign = Project(user_id=other_user.id, name="Not yours")
    db.add(foreign)
    db.commit()

    resp = client.post(f"/chat/{foreign.id}", json={"message": "Hi"})

    assert resp.status_code == 404
    assert resp.json() == {"detail": "Project not found"}
    assert completer.calls == []


def test_history_limit_query(client, db, project, user):
    add_history(db, project, user, 6)

    resp = client.get(f"/chat/{project.id}/history", params={"limit": 4})

    assert [m["content"] for m in resp.json()["messages"]] == ["m0", "m1", "m2", "m3"]


def test_history_limit_must_be_positive(client, project):
    resp = client.get(f"/chat/{project.id}/history", params={"limit": 0})
    assert resp.status_code == 422


def test_history_of_missing_project_is_404(client):
    resp = client.get("/chat/424242/history")
    assert resp.status_code == 404


def test_whitespace_only_message_is_accepted_and_stored(client, project, completer):
    resp = client.post(f"/chat/{project.id}", json={"message": "   "})

    assert resp.status_code == 200
    assert completer.calls[0][-1] == {"role": "user", "content": "   "}
    history = client.get(f"/chat/{project.id}/history").json()["messages"]
    assert history[0]["content"] == "   "


def test_run_serves_the_app_with_uvicorn(monkeypatch):
    from promptdesk import main

    calls = []
    monkeypatch.setattr(main.uvicorn, "run", lambda app, **kwargs: calls.append((app, kwargs)))

    main.run()

    assert calls == [
        ("promptdesk.main:app", {"host": main.settings.host, "port": main.settings.port})
    ]
