from __future__ import annotations

from fastapi import FastAPI
from fastapi.datastructures import Headers
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response

from .api_models import CorsPolicy


class PreflightCORSMiddleware(CORSMiddleware):
    """CORSMiddleware whose successful pre-flight answer has an empty body.

    Starlette replies "OK" to an accepted pre-flight; clients only read the
    headers, so the body is dropped. Rejected pre-flights keep the 400 reply.
    """

    def preflight_response(self, request_headers: Headers) -> Response:
        response = super().preflight_response(request_headers=request_headers)
        if response.status_code != 200:
            return response
        headers = {
            k: v for k, v in response.headers.items() if k.lower() not in {"content-length", "content-type"}
        }
        return Response(status_code=200, headers=headers)


def install_cors(app: FastAPI, policy: CorsPolicy) -> None:
    app.add_middleware(
        PreflightCORSMiddleware,
        allow_origins=policy.allowed_origins,
        allow_methods=policy.allowed_methods,
        allow_headers=policy.allowed_headers,
    )
