from fastapi import APIRouter, Depends, Header, Request

from receipt_reader.auth import AuthorizationGate
from receipt_reader.deps import get_gate, get_reader, read_json_body
from receipt_reader.receipt.reader import ALLOWED_METHOD, ReceiptReader

router = APIRouter()

# All verbs land here; the method is checked after the credential is read.
ROUTED_METHODS = ["GET", "HEAD", "OPTIONS", "POST", "PUT", "PATCH", "DELETE"]


@router.api_route("/read-receipt", methods=ROUTED_METHODS)
async def read_receipt(
    request: Request,
    authorization: str | None = Header(None),
    gate: AuthorizationGate = Depends(get_gate),
    reader: ReceiptReader = Depends(get_reader),
):
    token = gate.bearer_token(authorization)

    body = await read_json_body(request) if request.method == ALLOWED_METHOD else None
    payload = reader.validate(body, request.method)

    caller = await gate.verify(token)
    result = await reader.read(caller, payload)
    return result.model_dump(by_alias=True)
