from __future__ import annotations

import logging
import threading
from typing import Optional

from flask import Flask, jsonify, request
from werkzeug.exceptions import (
    BadRequest,
    Conflict,
    HTTPException,
    InternalServerError,
)

from linked_queue import (
    StringQueue,
    insert_head,
    insert_tail,
    q_free,
    q_new,
    q_reverse,
    q_size,
    q_sort,
    remove_head_into,
)
from models import QueueStatus

logger = logging.getLogger(__name__)


class InsufficientStorage(HTTPException):
    code = 507
    description = "could not allocate the new element"


class QueueHolder:
    """
    The one queue an app instance serves.
    StringQueue itself is not thread safe, so every access goes through lock.
    """

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.queue: StringQueue = self._fresh()

    @staticmethod
    def _fresh() -> StringQueue:
        q = q_new()
        if q is None:
            raise InternalServerError("could not allocate a queue")
        return q

    def reset(self) -> None:
        q_free(self.queue)
        self.queue = self._fresh()


def _text(q: StringQueue, limit: int) -> list[str]:
    shown = []
    for i, value in enumerate(q):
        if i >= limit:
            break
        shown.append(value.decode("utf-8", errors="replace"))
    return shown


def _value_from_request() -> str:
    body = request.get_json(silent=True)
    if not isinstance(body, dict) or not isinstance(body.get("value"), str):
        raise BadRequest('expected a JSON body {"value": "<text>"}')
    value = body["value"]
    try:
        value.encode("utf-8")
    except UnicodeEncodeError:
        raise BadRequest("value is not valid UTF-8 text")
    return value


def create_app(test_config: Optional[dict] = None) -> Flask:
    app = Flask(__name__)
    app.config.from_mapping(
        SECRET_KEY="dev-secret-key",
        QUEUE_BUFFER_SIZE=1024,
        QUEUE_MAX_SHOWN=50,
    )
    if test_config is None:
        app.config.from_prefixed_env("STRQ")
    else:
        app.config.from_mapping(test_config)

    holder = QueueHolder()
    app.extensions["string_queue"] = holder

    def snapshot():
        q = holder.queue
        return jsonify(size=q_size(q), values=_text(q, int(app.config["QUEUE_MAX_SHOWN"])))

    def check_insert(status: QueueStatus) -> None:
        if status is QueueStatus.ALLOCATION_FAILED:
            raise InsufficientStorage()
        if not status.ok:
            raise InternalServerError(f"insert failed: {status.value}")

    # -------------------------
    # errors
    # -------------------------
    @app.errorhandler(HTTPException)
    def handle_http_error(e: HTTPException):
        response = jsonify(error=e.name, message=e.description)
        response.status_code = e.code or 500
        return response

    # -------------------------
    # routes
    # -------------------------
    @app.route("/queue", methods=["GET"])
    def show_queue():
        with holder.lock:
            return snapshot()

    @app.route("/queue", methods=["DELETE"])
    def free_queue():
        with holder.lock:
            holder.reset()
            logger.info("queue reset")
            return snapshot()

    @app.route("/queue/head", methods=["POST"])
    def push_head():
        value = _value_from_request()
        with holder.lock:
            check_insert(insert_head(holder.queue, value))
            logger.info("insert head %r", value)
            return snapshot(), 201

    @app.route("/queue/tail", methods=["POST"])
    def push_tail():
        value = _value_from_request()
        with holder.lock:
            check_insert(insert_tail(holder.queue, value))
            logger.info("insert tail %r", value)
            return snapshot(), 201

    @app.route("/queue/head", methods=["DELETE"])
    def pop_head():
        bufsize = int(app.config["QUEUE_BUFFER_SIZE"])
        buf = bytearray(bufsize)
        with holder.lock:
            status = remove_head_into(holder.queue, buf, bufsize)
            if status is QueueStatus.QUEUE_EMPTY:
                raise Conflict("queue is empty")
            if not status.ok:
                raise InternalServerError(f"remove failed: {status.value}")

            raw = bytes(buf[: buf.index(0)]) if bufsize > 0 else b""
            logger.info("removed head %r", raw)
            return jsonify(
                removed=raw.decode("utf-8", errors="replace"),
                size=q_size(holder.queue),
            )

    @app.route("/queue/reverse", methods=["POST"])
    def reverse_queue():
        with holder.lock:
            q_reverse(holder.queue)
            logger.info("queue reversed")
            return snapshot()

    @app.route("/queue/sort", methods=["POST"])
    def sort_queue():
        with holder.lock:
            q_sort(holder.queue)
            logger.info("queue sorted")
            return snapshot()

    return app


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    create_app().run(debug=True)
