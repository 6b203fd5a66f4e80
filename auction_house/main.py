from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any

from fastapi import Body, Depends, FastAPI, HTTPException, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse
from jsonschema import ValidationError

from .admin import config as admin_config
from .admin import health as admin_health
from .admin import stats as admin_stats
from .auction.errors import (
    AuctionClosed,
    AuctionError,
    AuctionInProgress,
    BidError,
    ConstructionError,
    DuplicateId,
    NoBids,
    NotFound,
    Unauthorized,
)
from .auction.models import Auction, Bid, IdFactory, new_auction_id
from .auction.store import AuctionStore
from .config import ServerConfig, get_server_config
from .storage import build_storage
from .transport.keys import build_authorizer
from .transport.timestamps import TimestampError, format_timestamp, parse_timestamp
from .validation.validator import SchemaRegistry, get_schema_registry

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    server_config = get_server_config()
    storage = build_storage(server_config)
    authorizer = build_authorizer(server_config.auth)
    store = AuctionStore(storage, authorizer)

    app.state.server_config = server_config
    app.state.schema_registry = get_schema_registry()
    app.state.storage = storage
    app.state.authorizer = authorizer
    app.state.store = store
    app.state.id_factory = new_auction_id
    app.state.start_time = datetime.now(timezone.utc)
    logger.info(
        "auction server ready storage=%s auth=%s",
        server_config.storage.backend,
        server_config.auth.mode,
    )

    yield


app = FastAPI(
    title="Auction House",
    version="1.0.0",
    docs_url="/docs",
    default_response_class=ORJSONResponse,
    lifespan=lifespan,
)

_cors = get_server_config().cors
app.add_middleware(
    CORSMiddleware,
    allow_origins=list(_cors.allow_origins),
    allow_credentials=_cors.allow_credentials,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(admin_health.router)
app.include_router(admin_stats.router)
app.include_router(admin_config.router)


# Dependency helpers ---------------------------------------------------------


def get_server_settings(request: Request) -> ServerConfig:
    return request.app.state.server_config


def get_schema_service(request: Request) -> SchemaRegistry:
    return request.app.state.schema_registry


def get_auction_store(request: Request) -> AuctionStore:
    return request.app.state.store


def get_id_factory(request: Request) -> IdFactory:
    return request.app.state.id_factory


# Routes ---------------------------------------------------------------------
#
# Handlers are plain functions so each request runs on its own worker thread;
# the store and each auction carry their own locks.


@app.get("/", tags=["meta"])
def root(settings: ServerConfig = Depends(get_server_settings)) -> dict[str, Any]:
    return {
        "service": "auction-house",
        "version": app.version,
        "storage_backend": settings.storage.backend,
    }


@app.post("/app/login", tags=["auth"])
def login(settings: ServerConfig = Depends(get_server_settings)) -> dict[str, str]:
    return {"key": settings.auth.login_key}


@app.get("/app/auctions", tags=["auctions"])
def list_active_auctions(store: AuctionStore = Depends(get_auction_store)) -> dict[str, Any]:
    now = store.now()
    return {"auctions": [format_auction(auction, now) for auction in store.all_active(now)]}


@app.get("/app/auctions/pending", tags=["auctions"])
def list_pending_auctions(store: AuctionStore = Depends(get_auction_store)) -> dict[str, Any]:
    now = store.now()
    return {"auctions": [format_auction(auction, now) for auction in store.all_pending(now)]}


@app.get("/app/auctions/completed", tags=["auctions"])
def list_completed_auctions(store: AuctionStore = Depends(get_auction_store)) -> dict[str, Any]:
    now = store.now()
    return {"auctions": [format_auction(auction, now) for auction in store.all_completed(now)]}


@app.post("/app/auctions/add", tags=["auctions"], status_code=status.HTTP_201_CREATED)
def create_auction(
    payload: dict[str, Any] = Body(...),
    schemas: SchemaRegistry = Depends(get_schema_service),
    store: AuctionStore = Depends(get_auction_store),
    id_factory: IdFactory = Depends(get_id_factory),
) -> dict[str, Any]:
    _validate(schemas, "create_auction", payload)
    try:
        auction = build_auction(payload["auction"], id_factory)
        store.add(payload["key"], auction)
    except AuctionError as exc:
        raise http_error(exc) from exc
    return {"auction": format_auction(auction, store.now())}


@app.post("/app/auctions/update", tags=["auctions"])
def update_auction(
    payload: dict[str, Any] = Body(...),
    schemas: SchemaRegistry = Depends(get_schema_service),
    store: AuctionStore = Depends(get_auction_store),
    id_factory: IdFactory = Depends(get_id_factory),
) -> dict[str, Any]:
    _validate(schemas, "update_auction", payload)
    try:
        replacement = build_auction(payload["auction"], id_factory)
        auction = store.update(payload["key"], payload["id"], replacement)
    except AuctionError as exc:
        raise http_error(exc) from exc
    return {"auction": format_auction(auction, store.now())}


@app.post("/app/auctions/get", tags=["auctions"])
def get_auction(
    payload: dict[str, Any] = Body(...),
    schemas: SchemaRegistry = Depends(get_schema_service),
    store: AuctionStore = Depends(get_auction_store),
) -> dict[str, Any]:
    _validate(schemas, "auction_ref", payload)
    try:
        auction = store.get(payload["key"], payload["id"])
    except AuctionError as exc:
        raise http_error(exc) from exc
    return {"auction": format_auction(auction, store.now())}


@app.post("/app/auctions/delete", tags=["auctions"])
def delete_auction(
    payload: dict[str, Any] = Body(...),
    schemas: SchemaRegistry = Depends(get_schema_service),
    store: AuctionStore = Depends(get_auction_store),
) -> dict[str, str]:
    _validate(schemas, "auction_ref", payload)
    try:
        store.delete(payload["key"], payload["id"])
    except AuctionError as exc:
        raise http_error(exc) from exc
    return {"status": "deleted", "id": payload["id"]}


@app.post("/app/auctions/bid", tags=["bids"], status_code=status.HTTP_202_ACCEPTED)
def place_bid(
    payload: dict[str, Any] = Body(...),
    schemas: SchemaRegistry = Depends(get_schema_service),
    store: AuctionStore = Depends(get_auction_store),
) -> dict[str, Any]:
    _validate(schemas, "place_bid", payload)
    bid_payload = payload["bid"]
    bid = Bid(bidder_id=bid_payload["bidder_id"], price=bid_payload["price"], submitted_at=store.now())
    try:
        auction = store.place_bid(payload["id"], bid)
    except AuctionError as exc:
        raise http_error(exc) from exc
    return {"status": "accepted", "auction": format_auction(auction, store.now())}


@app.post("/app/auctions/result", tags=["bids"])
def auction_result(
    payload: dict[str, Any] = Body(...),
    schemas: SchemaRegistry = Depends(get_schema_service),
    store: AuctionStore = Depends(get_auction_store),
) -> dict[str, str]:
    _validate(schemas, "auction_ref", payload)
    try:
        winner = store.result(payload["key"], payload["id"])
    except AuctionError as exc:
        raise http_error(exc) from exc
    return {"id": payload["id"], "winner": winner}


def _validate(schemas: SchemaRegistry, schema_name: str, payload: dict[str, Any]) -> None:
    try:
        schemas.validate(schema_name, payload)
    except ValidationError as exc:
        raise HTTPException(status_code=422, detail=str(exc.message)) from exc


def build_auction(terms: dict[str, Any], id_factory: IdFactory) -> Auction:
    try:
        start = parse_timestamp(terms["start"])
        end = parse_timestamp(terms["end"])
    except TimestampError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return Auction.create(start, end, terms["reserve_price"], id_factory=id_factory)


def format_auction(auction: Auction, now: datetime) -> dict[str, Any]:
    return {
        "id": auction.id,
        "start": format_timestamp(auction.start),
        "end": format_timestamp(auction.end),
        "reserve_price": auction.reserve_price,
        "status": auction.state(now).value,
        "bids": [
            {
                "bidder_id": bid.bidder_id,
                "price": bid.price,
                "submitted_at": format_timestamp(bid.submitted_at),
            }
            for bid in auction.snapshot_bids()
        ],
    }


_STATUS_BY_ERROR: tuple[tuple[type[AuctionError], int], ...] = (
    (Unauthorized, 401),
    (NotFound, 404),
    (NoBids, 404),
    (DuplicateId, 409),
    (AuctionInProgress, 409),
    (AuctionClosed, 409),
    (ConstructionError, 422),
    (BidError, 422),
)


def http_error(exc: AuctionError) -> HTTPException:
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return HTTPException(status_code=status_code, detail=str(exc))
    logger.error("unmapped auction error: %s", exc, exc_info=exc)
    return HTTPException(status_code=500, detail=str(exc))
