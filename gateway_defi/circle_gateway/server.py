"""HTTP routes for the Gateway service.

Thin request/response marshalling over :py:class:`~gateway_defi.circle_gateway.service.GatewayService`.
Integer amounts travel as decimal strings in both directions.

Request bodies are strict: unknown fields are rejected with 422.

Example::

    import uvicorn

    from gateway_defi.circle_gateway.server import create_app

    uvicorn.run(create_app(service), host="0.0.0.0", port=8080)
"""

import logging
from typing import Annotated, Any

from fastapi import APIRouter, FastAPI, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, BeforeValidator, ConfigDict, Field

from gateway_defi.circle_gateway.balance import UnifiedBalance
from gateway_defi.circle_gateway.errors import (
    ConfigurationError,
    ExternalApiError,
    GatewayError,
    IntentExpired,
    InvalidAmount,
    InvalidPrivateKey,
    NetworkError,
    NotInitialized,
    ResponseFormatError,
    SigningUnavailable,
    UnknownDomain,
    UnsupportedChain,
    UntrustedContract,
)
from gateway_defi.circle_gateway.service import GatewayService, TransferSource
from gateway_defi.utils import to_unix_timestamp

logger = logging.getLogger(__name__)

#: Exception class -> HTTP status, first match in the exception MRO wins
ERROR_STATUS_CODES: dict[type[GatewayError], int] = {
    UnsupportedChain: status.HTTP_400_BAD_REQUEST,
    UnknownDomain: status.HTTP_400_BAD_REQUEST,
    InvalidAmount: status.HTTP_400_BAD_REQUEST,
    InvalidPrivateKey: status.HTTP_400_BAD_REQUEST,
    IntentExpired: status.HTTP_400_BAD_REQUEST,
    NotInitialized: status.HTTP_409_CONFLICT,
    SigningUnavailable: status.HTTP_409_CONFLICT,
    UntrustedContract: status.HTTP_409_CONFLICT,
    ExternalApiError: status.HTTP_502_BAD_GATEWAY,
    ResponseFormatError: status.HTTP_502_BAD_GATEWAY,
    NetworkError: status.HTTP_504_GATEWAY_TIMEOUT,
    ConfigurationError: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def _parse_raw_amount(value: Any) -> int:
    """Accept ``"1000000"`` or ``1000000``, reject floats and signs."""
    if isinstance(value, bool) or not isinstance(value, (str, int)):
        raise ValueError("amount must be a decimal integer string")
    if isinstance(value, str):
        if not (value.isascii() and value.isdigit()):
            raise ValueError("amount must be a decimal integer string")
        value = int(value)
    return value


#: Raw USDC amount given as decimal string
RawAmount = Annotated[int, BeforeValidator(_parse_raw_amount)]


class _StrictModel(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)


class InitRequest(_StrictModel):
    private_key: str = Field(alias="privateKey")


class DepositRequest(_StrictModel):
    source_chain: str = Field(alias="sourceChain")
    amount: RawAmount
    user_address: str = Field(alias="userAddress")


class TransferSourceRequest(_StrictModel):
    domain: int = Field(ge=0)
    amount: RawAmount


class TransferToVaultRequest(_StrictModel):
    user_address: str = Field(alias="userAddress")
    sources: list[TransferSourceRequest] = Field(min_length=1)
    total_amount: RawAmount = Field(alias="totalAmount")


class AttestationRequest(_StrictModel):
    burn_intents: list[dict] = Field(alias="burnIntents", min_length=1)


def serialise_balance(balance: UnifiedBalance) -> dict:
    """JSON form of a unified balance, ``lastUpdated`` in UNIX milliseconds."""
    dt = balance.last_updated
    return {
        "address": balance.address,
        "totalBalance": str(balance.total_balance),
        "chainBalances": {str(domain): str(amount) for domain, amount in sorted(balance.chain_balances.items())},
        "lastUpdated": int(to_unix_timestamp(dt)) * 1000 + dt.microsecond // 1000,
    }


def create_router(service: GatewayService) -> APIRouter:
    """Routes bound to one service instance."""
    router = APIRouter(tags=["circle-gateway"])

    @router.post("/init")
    def init(body: InitRequest):
        address = service.initialize(body.private_key)
        return {"success": True, "address": address}

    @router.get("/balance/{address}")
    def get_balance(address: str):
        return serialise_balance(service.get_unified_balance(address))

    @router.post("/deposit")
    def deposit(body: DepositRequest):
        result = service.initiate_deposit(body.user_address, body.source_chain, body.amount)
        return {"success": result.success, "message": result.message, "steps": result.steps}

    @router.post("/transfer-to-vault")
    def transfer_to_vault(body: TransferToVaultRequest):
        result = service.transfer_to_vault(
            body.user_address,
            [TransferSource(domain=s.domain, amount=s.amount) for s in body.sources],
            body.total_amount,
        )
        return {
            "success": result.success,
            "attestations": [{"burnIntent": a.burn_intent, "attestation": a.attestation} for a in result.attestations],
        }

    @router.post("/attestation")
    def attestation(body: AttestationRequest):
        return service.submit_burn_intents(body.burn_intents)

    @router.get("/info")
    def info():
        return service.fetch_info()

    return router


def create_app(service: GatewayService) -> FastAPI:
    """FastAPI application exposing the Gateway service."""
    app = FastAPI(title="Circle Gateway vault service")
    app.include_router(create_router(service))

    @app.exception_handler(GatewayError)
    async def gateway_error_handler(request: Request, exc: GatewayError):
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
        for cls in type(exc).__mro__:
            if cls in ERROR_STATUS_CODES:
                status_code = ERROR_STATUS_CODES[cls]
                break

        if status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc)
        else:
            logger.info("%s %s rejected: %s", request.method, request.url.path, exc)

        content = {"error": str(exc)}
        if isinstance(exc, ExternalApiError):
            content["status"] = exc.status
        return JSONResponse(status_code=status_code, content=content)

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError):
        logger.info("%s %s rejected: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": str(exc)})

    return app
