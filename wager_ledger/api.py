from contextlib import asynccontextmanager
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request, status
from fastapi.middleware.cors import CORSMiddleware

from .config import Settings, get_settings
from .errors import (
    ConflictError,
    InvalidArgumentError,
    LedgerServiceError,
    NotFoundError,
    StorageUnavailableError,
)
from .identity import IdentityResolver, UUIDIdentityResolver
from .logging_config import configure_logging, get_logger
from .models import (
    Account,
    AccountAudit,
    AdjustBalanceRequest,
    AdjustmentResponse,
    CreateMatchRequest,
    LedgerEntry,
    MarkReadResponse,
    Match,
    Notification,
    OpenAccountRequest,
    PaymentResponse,
    SettleMatchRequest,
    SettlementResponse,
)
from .service import LedgerService

logger = get_logger(__name__)

router = APIRouter()

_STATUS_BY_ERROR = (
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ConflictError, status.HTTP_409_CONFLICT),
    (InvalidArgumentError, status.HTTP_400_BAD_REQUEST),
    (StorageUnavailableError, status.HTTP_503_SERVICE_UNAVAILABLE),
)


def _http_error(e: LedgerServiceError) -> HTTPException:
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(e, error_type):
            return HTTPException(status_code=status_code, detail=e.to_detail())
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.to_detail())


def get_ledger_service(request: Request) -> LedgerService:
    return request.app.state.ledger_service


def get_identity_resolver(request: Request) -> IdentityResolver:
    return request.app.state.identity_resolver


@router.get("/health", tags=["System"])
def health_check(request: Request, service: LedgerService = Depends(get_ledger_service)):
    return {
        "status": "healthy",
        "service": request.app.state.settings.app_name,
        "storage": "open" if service.storage.is_open else "closed",
    }


@router.post("/accounts", response_model=Account, status_code=status.HTTP_201_CREATED, tags=["Accounts"])
def open_account(
    request: OpenAccountRequest,
    service: LedgerService = Depends(get_ledger_service),
) -> Account:
    try:
        return service.open_account(request.username)
    except LedgerServiceError as e:
        raise _http_error(e)


@router.get("/accounts", response_model=list[Account], tags=["Accounts"])
def list_accounts(service: LedgerService = Depends(get_ledger_service)) -> list[Account]:
    try:
        return service.list_accounts()
    except LedgerServiceError as e:
        raise _http_error(e)


@router.get("/accounts/{identity}", response_model=Account, tags=["Accounts"])
def get_account(
    identity: str,
    service: LedgerService = Depends(get_ledger_service),
    resolver: IdentityResolver = Depends(get_identity_resolver),
) -> Account:
    try:
        return service.get_account(resolver.resolve(identity))
    except LedgerServiceError as e:
        raise _http_error(e)


@router.get("/accounts/{identity}/audit", response_model=AccountAudit, tags=["Accounts"])
def audit_account(
    identity: str,
    service: LedgerService = Depends(get_ledger_service),
    resolver: IdentityResolver = Depends(get_identity_resolver),
) -> AccountAudit:
    try:
        return service.audit_account(resolver.resolve(identity))
    except LedgerServiceError as e:
        raise _http_error(e)


@router.post("/accounts/{identity}/adjust", response_model=AdjustmentResponse, tags=["Accounts"])
def adjust_balance(
    identity: str,
    request: AdjustBalanceRequest,
    service: LedgerService = Depends(get_ledger_service),
    resolver: IdentityResolver = Depends(get_identity_resolver),
) -> AdjustmentResponse:
    try:
        return service.adjust(resolver.resolve(identity), request.amount, request.description)
    except LedgerServiceError as e:
        raise _http_error(e)


@router.post("/matches", response_model=Match, status_code=status.HTTP_201_CREATED, tags=["Matches"])
def create_match(
    request: CreateMatchRequest,
    service: LedgerService = Depends(get_ledger_service),
) -> Match:
    try:
        return service.create_match(request)
    except LedgerServiceError as e:
        raise _http_error(e)


@router.get("/matches", response_model=list[Match], tags=["Matches"])
def list_matches(service: LedgerService = Depends(get_ledger_service)) -> list[Match]:
    try:
        return service.list_matches()
    except LedgerServiceError as e:
        raise _http_error(e)


@router.get("/matches/{match_id}", response_model=Match, tags=["Matches"])
def get_match(match_id: UUID, service: LedgerService = Depends(get_ledger_service)) -> Match:
    try:
        return service.get_match(match_id)
    except LedgerServiceError as e:
        raise _http_error(e)


@router.patch("/matches/{match_id}/settle", response_model=SettlementResponse, tags=["Matches"])
def settle_match(
    match_id: UUID,
    request: SettleMatchRequest,
    service: LedgerService = Depends(get_ledger_service),
) -> SettlementResponse:
    try:
        return service.settle_match(match_id, request.winning_team)
    except LedgerServiceError as e:
        raise _http_error(e)


@router.post("/matches/{match_id}/pay/{identity}", response_model=PaymentResponse, tags=["Matches"])
def pay_player(
    match_id: UUID,
    identity: str,
    service: LedgerService = Depends(get_ledger_service),
    resolver: IdentityResolver = Depends(get_identity_resolver),
) -> PaymentResponse:
    try:
        return service.pay_player(match_id, resolver.resolve(identity))
    except LedgerServiceError as e:
        raise _http_error(e)


@router.get("/transactions", response_model=list[LedgerEntry], tags=["Transactions"])
def list_transactions(service: LedgerService = Depends(get_ledger_service)) -> list[LedgerEntry]:
    try:
        return service.list_all_transactions()
    except LedgerServiceError as e:
        raise _http_error(e)


@router.get("/transactions/{identity}", response_model=list[LedgerEntry], tags=["Transactions"])
def list_account_transactions(
    identity: str,
    service: LedgerService = Depends(get_ledger_service),
    resolver: IdentityResolver = Depends(get_identity_resolver),
) -> list[LedgerEntry]:
    try:
        return service.list_transactions_for_account(resolver.resolve(identity))
    except LedgerServiceError as e:
        raise _http_error(e)


@router.get("/notifications/{identity}", response_model=list[Notification], tags=["Notifications"])
def list_notifications(
    identity: str,
    service: LedgerService = Depends(get_ledger_service),
    resolver: IdentityResolver = Depends(get_identity_resolver),
) -> list[Notification]:
    try:
        return service.list_notifications(resolver.resolve(identity))
    except LedgerServiceError as e:
        raise _http_error(e)


@router.post("/notifications/{identity}/read", response_model=MarkReadResponse, tags=["Notifications"])
def mark_notifications_read(
    identity: str,
    service: LedgerService = Depends(get_ledger_service),
    resolver: IdentityResolver = Depends(get_identity_resolver),
) -> MarkReadResponse:
    try:
        account_id = resolver.resolve(identity)
        return MarkReadResponse(account_id=account_id, updated=service.mark_notifications_read(account_id))
    except LedgerServiceError as e:
        raise _http_error(e)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    configure_logging(settings.log_level, settings.json_logs, settings.app_env)
    app.state.ledger_service.open()
    logger.info("ledger_api_started", app_env=settings.app_env)
    yield
    app.state.ledger_service.close()
    logger.info("ledger_api_stopped")


def create_app(
    service: Optional[LedgerService] = None,
    settings: Optional[Settings] = None,
    identity_resolver: Optional[IdentityResolver] = None,
    root_path: str = "",
) -> FastAPI:
    settings = settings or get_settings()

    app = FastAPI(
        title="Wager Ledger API",
        description="Credit ledger for staked two-team matches with exactly-once settlement and an auditable transaction log",
        version="1.0.0",
        root_path=root_path,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.ledger_service = service or LedgerService()
    app.state.identity_resolver = identity_resolver or UUIDIdentityResolver()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    settings = get_settings()
    uvicorn.run(app, host=settings.app_host, port=settings.app_port)
