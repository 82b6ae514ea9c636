"""HTTP gateway serving Cosmos-style REST routes backed by a Tendermint RPC node."""

from __future__ import annotations

import argparse
import base64
import binascii
import itertools
import json
import struct
import threading
import time
from typing import Any

import requests
from flask import Flask, Response, jsonify, request

DEFAULT_RPC_URL = "http://localhost:26657"
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8000

_U32_MAX = 2**32 - 1
_RPC_TIMEOUT_SECONDS = 60

_CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, GET, PATCH, OPTIONS",
    "Access-Control-Allow-Headers": "*",
    "Access-Control-Allow-Credentials": "true",
}


class RpcError(Exception):
    """Raised when the Tendermint RPC node cannot answer a request."""


class _TendermintRpc:
    """Minimal JSON-RPC client for a Tendermint node."""

    def __init__(self, url: str) -> None:
        self.url = url
        self._session = requests.Session()
        self._ids = itertools.count(1)

    def call(self, method: str, params: dict[str, Any]) -> dict[str, Any]:
        payload = {"jsonrpc": "2.0", "id": next(self._ids), "method": method, "params": params}
        try:
            response = self._session.post(self.url, json=payload, timeout=_RPC_TIMEOUT_SECONDS)
        except requests.RequestException as exc:
            raise RpcError(str(exc)) from exc
        try:
            body = response.json()
        except ValueError:
            raise RpcError(f"invalid RPC response (HTTP {response.status_code})") from None
        if not isinstance(body, dict):
            raise RpcError("invalid RPC response")
        if body.get("error"):
            raise RpcError(json.dumps(body["error"]))
        result = body.get("result")
        if not isinstance(result, dict):
            raise RpcError("RPC response has no result")
        return result

    def broadcast_tx_commit(self, tx: bytes) -> dict[str, Any]:
        return self.call("broadcast_tx_commit", {"tx": base64.b64encode(tx).decode("ascii")})

    def abci_query(self, data: bytes, height: int | None, prove: bool) -> dict[str, Any]:
        params: dict[str, Any] = {"data": data.hex(), "prove": prove}
        if height is not None:
            params["height"] = str(height)
        result = self.call("abci_query", params)
        response = result.get("response")
        if not isinstance(response, dict):
            raise RpcError("abci_query response is missing")
        return response


def _bad_request(message: str) -> Response:
    return Response(message, status=400, mimetype="text/plain")


def _server_error(message: str) -> Response:
    return Response(message, status=500, mimetype="text/plain")


def _code(tx_result: dict[str, Any]) -> int:
    return int(tx_result.get("code") or 0)


def _tx_response(result: dict[str, Any]) -> dict[str, Any]:
    check_tx = result.get("check_tx") or {}
    deliver_tx = result.get("deliver_tx", result.get("tx_result")) or {}
    chosen = check_tx if _code(check_tx) != 0 else deliver_tx
    return {
        "height": "0",
        "txhash": result.get("hash", ""),
        "codespace": chosen.get("codespace", ""),
        "code": _code(chosen),
        "data": "",
        "raw_log": "[]",
        "logs": [chosen.get("log", "")],
        "info": chosen.get("info", ""),
        "gas_wanted": chosen.get("gas_wanted", "0"),
        "gas_used": chosen.get("gas_used", "0"),
        "tx": None,
        "timestamp": "",
    }


def _decode_b64(text: str) -> bytes:
    return base64.b64decode(text.strip(), validate=True)


def _height_arg() -> int | None:
    raw = request.args.get("height")
    if raw is None:
        return None
    try:
        height = int(raw)
    except ValueError:
        return None
    return height if 0 <= height <= _U32_MAX else None


def _empty_rewards() -> dict[str, Any]:
    return {"height": "0", "result": {"rewards": [], "total": []}}


def create_app(rpc_url: str = DEFAULT_RPC_URL) -> Flask:
    """Build the REST gateway talking to the Tendermint node at ``rpc_url``."""
    app = Flask(__name__)
    rpc = _TendermintRpc(rpc_url)
    cache: dict[str, tuple[int, str]] = {}
    cache_lock = threading.Lock()
    app.extensions["query_cache"] = cache

    @app.after_request
    def add_cors_headers(response: Response) -> Response:
        for name, value in _CORS_HEADERS.items():
            response.headers[name] = value
        return response

    def broadcast(tx_bytes: bytes) -> Response:
        try:
            result = rpc.broadcast_tx_commit(tx_bytes)
        except RpcError as exc:
            return _bad_request(str(exc))
        return jsonify(_tx_response(result))

    @app.post("/txs")
    def txs() -> Response:
        body = request.get_data(as_text=True)
        if body.startswith("{"):
            try:
                tx_request = json.loads(body)
                tx = tx_request["tx"]
                if not isinstance(tx_request["mode"], str):
                    raise ValueError("mode must be a string")
            except (ValueError, KeyError, TypeError) as exc:
                return _server_error(f"invalid tx request: {exc}")
            tx_bytes = json.dumps(
                tx, separators=(",", ":"), sort_keys=True, ensure_ascii=False
            ).encode("utf-8")
        else:
            try:
                tx_bytes = _decode_b64(body)
            except (binascii.Error, ValueError) as exc:
                return _bad_request(str(exc))
        return broadcast(tx_bytes)

    @app.post("/cosmos/tx/v1beta1/txs")
    def txs2() -> Response:
        body = request.get_data(as_text=True)
        if body.startswith("{"):
            try:
                tx_request = json.loads(body)
                encoded = tx_request["tx_bytes"]
                if not isinstance(encoded, str) or not isinstance(tx_request["mode"], str):
                    raise ValueError("tx_bytes and mode must be strings")
            except (ValueError, KeyError, TypeError) as exc:
                return _server_error(f"invalid tx request: {exc}")
        else:
            encoded = body
        try:
            tx_bytes = _decode_b64(encoded)
        except (binascii.Error, ValueError) as exc:
            return _bad_request(str(exc))
        return broadcast(tx_bytes)

    @app.get("/query/<query>")
    def query(query: str) -> Response:
        now = int(time.time())
        try:
            query_bytes = bytes.fromhex(query)
        except ValueError as exc:
            return _bad_request(str(exc))
        try:
            res = rpc.abci_query(query_bytes, _height_arg(), True)
        except RpcError as exc:
            return _bad_request(str(exc))

        try:
            res_height = int(res.get("height") or 0)
        except (TypeError, ValueError):
            return _server_error("invalid response height")
        if not 0 <= res_height <= _U32_MAX:
            return _server_error(f"response height out of range: {res_height}")

        code = int(res.get("code") or 0)
        if code != 0:
            return _bad_request(f"code {code}: {res.get('log', '')}")

        try:
            value = base64.b64decode(res.get("value") or "")
        except (binascii.Error, ValueError):
            return _server_error("invalid response value")
        res_b64 = base64.b64encode(struct.pack(">I", res_height) + value).decode("ascii")

        with cache_lock:
            cache[query] = (now, res_b64)
        return Response(res_b64, mimetype="text/plain")

    @app.get("/cosmos/staking/v1beta1/delegators/<address>/unbonding_delegations")
    def staking_delegators_unbonding_delegations(address: str) -> Response:
        return jsonify(
            {"unbonding_responses": [], "pagination": {"next_key": None, "total": "0"}}
        )

    @app.get("/staking/delegators/<address>/unbonding_delegations")
    def staking_delegators_unbonding_delegations_2(address: str) -> Response:
        return jsonify({"height": "0", "result": []})

    @app.get("/staking/delegators/<address>/delegations")
    def staking_delegations_2(address: str) -> Response:
        return jsonify({"height": "0", "result": []})

    @app.get("/cosmos/distribution/v1beta1/delegators/<address>/rewards")
    def distribution_delegators_rewards(address: str) -> Response:
        return jsonify(_empty_rewards())

    @app.get("/distribution/delegators/<address>/rewards")
    def distribution_delegators_rewards_2(address: str) -> Response:
        return jsonify(_empty_rewards())

    @app.get("/bank/total/<denom>")
    def bank_total(denom: str) -> Response:
        return jsonify({"height": "0", "result": "0"})

    @app.get("/cosmos/staking/v1beta1/pool")
    def staking_pool() -> Response:
        return jsonify({"bonded_tokens": "0", "not_bonded_tokens": "0"})

    @app.get("/cosmos/bank/v1beta1/supply/unom")
    def bank_supply_unom() -> Response:
        return jsonify({"amount": {"denom": "unom", "amount": "1"}})

    @app.get("/staking/pool")
    def staking_pool_2() -> Response:
        return jsonify(
            {
                "height": "0",
                "result": {
                    "loose_tokens": "0",
                    "bonded_tokens": "0",
                    "inflation_last_time": "0",
                    "inflation": "1",
                    "date_last_commission_reset": "0",
                    "prev_bonded_shares": "0",
                },
            }
        )

    transfer_params = {"params": {"send_enabled": False, "receive_enabled": False}}

    @app.get("/ibc/apps/transfer/v1/params")
    def ibc_apps_transfer_params() -> Response:
        return jsonify(transfer_params)

    @app.get("/ibc/applications/transfer/v1/params")
    def ibc_applications_transfer_params() -> Response:
        return jsonify(transfer_params)

    return app


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="nomkit-rest", description="Run the REST gateway.")
    parser.add_argument("--rpc-url", default=DEFAULT_RPC_URL)
    parser.add_argument("--address", default=DEFAULT_HOST)
    parser.add_argument("--port", type=int, default=DEFAULT_PORT)
    args = parser.parse_args(argv)

    create_app(args.rpc_url).run(host=args.address, port=args.port)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())