"""
FastAPI Reference Dispatcher

Delivers init/invoke/query calls over HTTP to the ledger state machine.
Request bodies carry already-tokenized string arguments; ledger errors are
returned as {"Error": "<message>"} with the status of the error class.
"""

from contextlib import asynccontextmanager
from typing import List, Optional
from fastapi import FastAPI, Depends, Request
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel, Field
import uvicorn

from . import __version__
from .config import LedgerConfig, get_config
from .dispatcher import dispatch, INIT_FUNCTION, INVOKE_FUNCTION
from .errors import LedgerError
from .logging_config import setup_logging, log_action
from .state_machine import LedgerStateMachine, QUERY_FUNCTION
from .storage import LedgerStore, create_store


class InvocationRequest(BaseModel):
    args: List[str] = Field(default_factory=list, description="Tokenized string arguments")


class QueryRequest(BaseModel):
    function: str = Field(QUERY_FUNCTION, description="Query function name, must be \"query\"")
    args: List[str] = Field(default_factory=list, description="[account] or [account, bank]")


class LedgerService:
    """Store and state machine shared by the HTTP handlers"""

    def __init__(self, store: LedgerStore, machine: LedgerStateMachine):
        self.store = store
        self.machine = machine


def get_service(request: Request) -> LedgerService:
    return request.app.state.service


def create_app(store: Optional[LedgerStore] = None,
               config: Optional[LedgerConfig] = None) -> FastAPI:
    """Create and configure the FastAPI application"""
    config = config or get_config()
    logger = setup_logging(config.log_level, fmt=config.log_format, log_file=config.log_file)

    owns_store = store is None
    if owns_store:
        store = create_store(config.storage_backend, config.database_path)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Close the store on shutdown if this app created it"""
        yield
        if owns_store:
            app.state.service.store.close()

    app = FastAPI(
        title="Bank Ledger API",
        description="Multi-bank account holdings ledger",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan
    )
    app.state.service = LedgerService(store, LedgerStateMachine(config))

    @app.exception_handler(LedgerError)
    async def ledger_error_handler(request: Request, exc: LedgerError):
        log_action(logger, "warning", str(exc), operation=request.url.path.strip("/"),
                   key=exc.key, extra={"code": exc.code})
        return JSONResponse(status_code=exc.http_status, content=exc.to_payload())

    @app.get("/health")
    async def health_check():
        """Health check endpoint"""
        return {
            "status": "healthy",
            "service": "bank_ledger_api",
            "version": __version__
        }

    @app.post("/init")
    def init(request: InvocationRequest, service: LedgerService = Depends(get_service)):
        """Create an account and its holdings"""
        result = dispatch(service.machine, service.store, INIT_FUNCTION, request.args)
        return {"result": result}

    @app.post("/invoke")
    def invoke(request: InvocationRequest, service: LedgerService = Depends(get_service)):
        """Deposit to or withdraw from a holding"""
        result = dispatch(service.machine, service.store, INVOKE_FUNCTION, request.args)
        return {"result": result}

    @app.post("/query")
    def query(request: QueryRequest, service: LedgerService = Depends(get_service)):
        """Read an account's bank list or a holding's balance"""
        payload = service.machine.query(service.store, request.function, request.args)
        return Response(content=payload, media_type="application/json")

    return app


def run_server(host: str = "0.0.0.0", port: int = 8090, debug: bool = False):
    """Run the FastAPI server"""
    uvicorn.run(
        "bank_ledger.api:create_app",
        factory=True,
        host=host,
        port=port,
        reload=debug,
        log_level="info"
    )
