from __future__ import annotations

import json
import logging
from http import HTTPStatus
from typing import Callable
from wsgiref.simple_server import make_server

from consult_intake.mariadb import ping_mariadb
from consult_intake.models import FailureKind, StoreSettings, SubmissionResult
from consult_intake.submission_service import SubmissionPipeline

logger = logging.getLogger(__name__)

SUBMIT_PATH = "/api/submit"
HEALTH_PATH = "/api/health"
GENERIC_ERROR_MESSAGE = "서버 오류가 발생했습니다."

_FAILURE_STATUS = {
    FailureKind.VALIDATION: HTTPStatus.BAD_REQUEST,
    FailureKind.CONFIGURATION: HTTPStatus.INTERNAL_SERVER_ERROR,
    FailureKind.PERSISTENCE: HTTPStatus.INTERNAL_SERVER_ERROR,
}


def run_api_server(host: str, port: int, app: Callable) -> None:  # type: ignore[type-arg]
    with make_server(host, port, app) as server:
        logger.info("consult-intake api listening on http://%s:%s", host, port)
        server.serve_forever()


def create_app(pipeline: SubmissionPipeline, *, store_settings: StoreSettings | None = None):  # type: ignore[no-untyped-def]
    def app(environ: dict, start_response):  # type: ignore[no-untyped-def]
        method = environ.get("REQUEST_METHOD", "GET")
        path = environ.get("PATH_INFO", "")
        try:
            if path == SUBMIT_PATH:
                if method != "POST":
                    return _json(start_response, HTTPStatus.METHOD_NOT_ALLOWED, {"error": "METHOD_NOT_ALLOWED"})
                payload = _read_json(environ)
                result = pipeline.submit(payload)
                status, body = submission_response(result)
                return _json(start_response, status, body)

            if path == HEALTH_PATH:
                if method != "GET":
                    return _json(start_response, HTTPStatus.METHOD_NOT_ALLOWED, {"error": "METHOD_NOT_ALLOWED"})
                return _health(start_response, store_settings)

            return _json(start_response, HTTPStatus.NOT_FOUND, {"error": "NOT_FOUND"})
        except Exception as exc:
            logger.exception("unhandled error method=%s path=%s", method, path)
            return _json(
                start_response,
                HTTPStatus.INTERNAL_SERVER_ERROR,
                {"error": GENERIC_ERROR_MESSAGE, "message": str(exc)},
            )

    return app


def submission_response(result: SubmissionResult) -> tuple[HTTPStatus, dict]:
    if result.success:
        return HTTPStatus.CREATED, {"success": True, "data": result.records}
    body: dict = {"error": result.message}
    if result.details:
        body["details"] = result.details
    return _FAILURE_STATUS.get(result.kind, HTTPStatus.INTERNAL_SERVER_ERROR), body


def _health(start_response, store_settings: StoreSettings | None):  # type: ignore[no-untyped-def]
    if store_settings is None:
        return _json(
            start_response,
            HTTPStatus.SERVICE_UNAVAILABLE,
            {"status": "degraded", "db": "unconfigured"},
        )
    try:
        ping_mariadb(store_settings)
    except Exception as exc:
        logger.warning("health check: database ping failed: %s", exc)
        return _json(
            start_response,
            HTTPStatus.SERVICE_UNAVAILABLE,
            {"status": "degraded", "db": "down"},
        )
    return _json(start_response, HTTPStatus.OK, {"status": "ok", "db": "up"})


def _read_json(environ: dict) -> dict:
    body_size = int(environ.get("CONTENT_LENGTH", "0") or "0")
    if body_size <= 0:
        raise ValueError("request body is empty")
    body = environ["wsgi.input"].read(body_size)
    payload = json.loads(body.decode("utf-8"))
    if not isinstance(payload, dict):
        raise ValueError("request body must be JSON object")
    return payload


def _json(start_response, status: HTTPStatus, payload: dict):  # type: ignore[no-untyped-def]
    body = json.dumps(payload, ensure_ascii=True, default=str).encode("utf-8")
    start_response(
        f"{status.value} {status.phrase}",
        [("Content-Type", "application/json; charset=utf-8"), ("Content-Length", str(len(body)))],
    )
    return [body]
