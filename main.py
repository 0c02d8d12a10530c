import asyncio
import logging
from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from access import AccessGateway, SessionManager, get_gateway, require_admin
from booking import BookingEngine
from config import Settings
from database import get_session, init_db, make_engine, make_sessionmaker
from errors import BookingError, Conflict, Forbidden, NotFound, storage_errors
from queries import PublicQueryService
from schemas import (
    BookRequest,
    CancelRequest,
    LoginRequest,
    MoveRequest,
    MyBookingRequest,
    PublicSlotOut,
    SlotOut,
    SuccessOut,
    TokenOut,
)
from seed import seed_if_empty
from store import SlotStore

logger = logging.getLogger(__name__)


# --- Dependencies ---

def get_store(request: Request, session: AsyncSession = Depends(get_session)) -> SlotStore:
    return SlotStore(session, request.app.state.write_lock)


def get_engine(store: SlotStore = Depends(get_store)) -> BookingEngine:
    return BookingEngine(store)


def get_queries(store: SlotStore = Depends(get_store)) -> PublicQueryService:
    return PublicQueryService(store)


# --- Application ---

def create_app(settings: Optional[Settings] = None) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        config = settings or Settings.from_env()
        logging.basicConfig(level=config.log_level)

        engine = make_engine(config.database_url, echo=config.sql_echo)
        app.state.settings = config
        app.state.sessionmaker = make_sessionmaker(engine)
        # One lock for every writer in this process
        app.state.write_lock = asyncio.Lock()
        app.state.gateway = AccessGateway(config, SessionManager())

        await init_db(engine)
        if config.seed_on_startup:
            async with app.state.sessionmaker() as session:
                await seed_if_empty(SlotStore(session, app.state.write_lock), config.seed_year)
        logger.info("Slot booking service started")

        yield

        await engine.dispose()

    app = FastAPI(title="Slot Booking Service", lifespan=lifespan)

    @app.exception_handler(BookingError)
    async def booking_error_handler(request: Request, exc: BookingError):
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"error": "Missing fields"})

    # --- Public routes ---

    @app.get("/health")
    async def health(session: AsyncSession = Depends(get_session)):
        with storage_errors("Database unavailable"):
            await session.execute(text("SELECT 1"))
        return {"status": "ok"}

    @app.get("/api/slots", response_model=List[PublicSlotOut])
    async def list_slots(queries: PublicQueryService = Depends(get_queries)):
        # Occupant identity and code never leave this endpoint
        slots = await queries.public_slots()
        return [PublicSlotOut.from_public(slot) for slot in slots]

    @app.post("/api/my-booking", response_model=SlotOut)
    async def my_booking(body: MyBookingRequest, engine: BookingEngine = Depends(get_engine)):
        slot = await engine.find_booking(body.secret_code)
        return SlotOut.from_slot(slot)

    @app.post("/api/book", response_model=SuccessOut)
    async def book_slot(body: BookRequest, engine: BookingEngine = Depends(get_engine)):
        await engine.book(body.slot_id, body.user_name, body.secret_code)
        return SuccessOut()

    @app.post("/api/move", response_model=SuccessOut)
    async def move_booking(body: MoveRequest, engine: BookingEngine = Depends(get_engine)):
        try:
            await engine.move(body.old_slot_id, body.new_slot_id, body.secret_code)
        except (Forbidden, Conflict, NotFound) as exc:
            # The web client shows the reason as-is
            return JSONResponse(status_code=400, content={"error": exc.detail})
        return SuccessOut()

    # --- Admin routes ---

    @app.post("/api/admin/login", response_model=TokenOut)
    async def admin_login(body: LoginRequest, gateway: AccessGateway = Depends(get_gateway)):
        return TokenOut(token=gateway.login(body.login, body.password))

    @app.post("/api/admin/logout", response_model=SuccessOut)
    async def admin_logout(
        token: str = Depends(require_admin),
        gateway: AccessGateway = Depends(get_gateway),
    ):
        gateway.logout(token)
        return SuccessOut()

    @app.get("/api/admin/slots", response_model=List[SlotOut])
    async def admin_slots(
        _token: str = Depends(require_admin),
        queries: PublicQueryService = Depends(get_queries),
    ):
        slots = await queries.admin_slots()
        return [SlotOut.from_slot(slot) for slot in slots]

    @app.post("/api/admin/cancel", response_model=SuccessOut)
    async def admin_cancel(
        body: CancelRequest,
        _token: str = Depends(require_admin),
        engine: BookingEngine = Depends(get_engine),
    ):
        await engine.cancel(body.slot_id)
        return SuccessOut()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # fine for local development only
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    return app


app = create_app()
