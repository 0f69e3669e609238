"""Tests for the queue inspection service."""

import pytest

import linked_queue
from app import create_app


@pytest.fixture
def app():
    return create_app({"TESTING": True, "QUEUE_BUFFER_SIZE": 4, "QUEUE_MAX_SHOWN": 3})


@pytest.fixture
def client(app):
    return app.test_client()


def push(client, where, value):
    return client.post(f"/queue/{where}", json={"value": value})


class TestQueueRoutes:
    """Insert, remove and inspect through HTTP."""

    def test_empty_queue(self, client):
        resp = client.get("/queue")
        assert resp.status_code == 200
        assert resp.get_json() == {"size": 0, "values": []}

    def test_insert_both_ends(self, client):
        assert push(client, "tail", "x").status_code == 201
        resp = push(client, "head", "y")
        assert resp.status_code == 201
        assert resp.get_json() == {"size": 2, "values": ["y", "x"]}

    def test_listing_is_capped(self, client):
        for v in "abcde":
            push(client, "tail", v)
        body = client.get("/queue").get_json()
        assert body["size"] == 5
        assert body["values"] == ["a", "b", "c"]

    def test_remove_truncates_to_buffer(self, client):
        push(client, "tail", "hello")
        resp = client.delete("/queue/head")
        assert resp.status_code == 200
        assert resp.get_json() == {"removed": "hel", "size": 0}

    def test_remove_from_empty_is_conflict(self, client):
        resp = client.delete("/queue/head")
        assert resp.status_code == 409
        assert resp.get_json()["error"] == "Conflict"

    def test_reverse_and_sort(self, client):
        for v in ["c", "a", "b"]:
            push(client, "tail", v)
        assert client.post("/queue/reverse").get_json()["values"] == ["b", "a", "c"]
        assert client.post("/queue/sort").get_json()["values"] == ["a", "b", "c"]

    def test_reset(self, client, app):
        push(client, "tail", "a")
        old = app.extensions["string_queue"].queue
        resp = client.delete("/queue")
        assert resp.get_json() == {"size": 0, "values": []}
        assert app.extensions["string_queue"].queue is not old
        assert old.size() == 0


class TestErrors:
    """Bad input and allocation failures."""

    @pytest.mark.parametrize("payload", [None, {}, {"value": 3}, ["a"]])
    def test_bad_body(self, client, payload):
        resp = client.post("/queue/tail", json=payload)
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "Bad Request"

    def test_allocation_failure(self, client, monkeypatch):
        def boom(*args, **kwargs):
            raise MemoryError

        monkeypatch.setattr(linked_queue, "_copy_value", boom)
        resp = push(client, "head", "a")
        assert resp.status_code == 507
        assert resp.get_json()["error"] == "Insufficient Storage"
        assert client.get("/queue").get_json()["size"] == 0

    def test_lone_surrogate_is_bad_request(self, client):
        resp = client.post(
            "/queue/tail",
            data='{"value": "\\ud800"}',
            content_type="application/json",
        )
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "Bad Request"
        assert client.get("/queue").get_json()["size"] == 0

    def test_unknown_route_is_json(self, client):
        resp = client.get("/nope")
        assert resp.status_code == 404
        assert resp.get_json()["error"] == "Not Found"


class TestConfig:
    """Configuration sources."""

    def test_defaults(self):
        app = create_app({})
        assert app.config["QUEUE_BUFFER_SIZE"] == 1024
        assert app.config["QUEUE_MAX_SHOWN"] == 50

    def test_prefixed_env(self, monkeypatch):
        monkeypatch.setenv("STRQ_QUEUE_BUFFER_SIZE", "16")
        app = create_app()
        assert app.config["QUEUE_BUFFER_SIZE"] == 16
