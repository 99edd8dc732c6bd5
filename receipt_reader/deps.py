import json

from fastapi import Request

from receipt_reader.auth import AuthorizationGate
from receipt_reader.receipt.reader import ReceiptReader


def get_gate(request: Request) -> AuthorizationGate:
    return request.app.state.gate


def get_reader(request: Request) -> ReceiptReader:
    return request.app.state.reader


async def read_json_body(request: Request):
    """Return the decoded JSON body, or None when it is empty or not JSON."""
    raw = await request.body()
    if not raw:
        return None
    try:
        return json.loads(raw)
    except ValueError:
        return None
