from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path

import requests
from pydantic import ValidationError

from greeter.fetcher import Success, fetch_once, render
from greeter.manifests import default_workloads, render_manifests
from greeter.settings import load_settings

CORS_HEADERS = (
    "Access-Control-Allow-Origin",
    "Access-Control-Allow-Methods",
    "Access-Control-Allow-Headers",
)


def _print(obj) -> None:
    print(json.dumps(obj, indent=2, ensure_ascii=False))


def check_backend(url: str, origin: str, method: str = "POST", timeout_s: float = 5.0) -> tuple[dict, bool]:
    """GET the backend and send a pre-flight, the way a browser on `origin` would."""
    report: dict = {"url": url, "origin": origin}
    try:
        r = requests.get(url, headers={"Origin": origin}, timeout=timeout_s)
        pre = requests.options(
            url,
            headers={
                "Origin": origin,
                "Access-Control-Request-Method": method,
                "Access-Control-Request-Headers": "Content-Type",
            },
            timeout=timeout_s,
        )
    except requests.exceptions.RequestException as e:
        report["error"] = f"{type(e).__name__}: {e}"
        return report, False

    report["get"] = {
        "status": r.status_code,
        "body": r.text,
        "allow_origin": r.headers.get("Access-Control-Allow-Origin"),
    }
    report["preflight"] = {
        "status": pre.status_code,
        "body_length": len(pre.content),
        **{h: pre.headers.get(h) for h in CORS_HEADERS},
    }
    allowed = (pre.headers.get("Access-Control-Allow-Methods") or "").upper()
    ok = (
        r.ok
        and r.headers.get("Access-Control-Allow-Origin") is not None
        and pre.ok
        and method.upper() in [m.strip() for m in allowed.split(",")]
    )
    return report, ok


def main(argv: list[str] | None = None) -> int:
    cfg = load_settings()
    p = argparse.ArgumentParser(description="Greeter stack operator CLI")
    sub = p.add_subparsers(dest="cmd", required=True)

    s_check = sub.add_parser("check", help="Check the backend answer and its CORS headers")
    s_check.add_argument("--url", default=cfg.backend_url)
    s_check.add_argument("--origin", default="http://localhost:30000")
    s_check.add_argument("--method", default="POST", help="Method to ask for in the pre-flight")
    s_check.add_argument("--timeout", type=float, default=5.0)

    s_fetch = sub.add_parser("fetch", help="Run the client fetch once and print what it would display")
    s_fetch.add_argument("--url", default=cfg.backend_url)
    s_fetch.add_argument("--timeout", type=float, default=cfg.fetch_timeout_s)

    s_man = sub.add_parser("manifests", help="Render Kubernetes descriptors for both tiers")
    s_man.add_argument("--replicas", type=int, default=None)
    s_man.add_argument("--namespace", default=cfg.namespace)
    s_man.add_argument("--out", default=None, help="Write to this file instead of stdout")

    args = p.parse_args(argv)

    if args.cmd == "check":
        report, ok = check_backend(args.url, args.origin, method=args.method, timeout_s=args.timeout)
        _print(report)
        return 0 if ok else 1

    if args.cmd == "fetch":
        state = asyncio.run(fetch_once(args.url, timeout_s=args.timeout))
        print(render(state))
        return 0 if isinstance(state, Success) else 1

    if args.cmd == "manifests":
        try:
            workloads = default_workloads(cfg, replicas=args.replicas)
        except ValidationError as e:
            p.error(f"invalid descriptor input: {e.errors()[0]['msg']}")
        text = render_manifests(workloads, namespace=args.namespace)
        if args.out:
            Path(args.out).write_text(text, encoding="utf-8")
        else:
            sys.stdout.write(text)
        return 0

    return 2


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
