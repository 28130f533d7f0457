"""
Module principal de l'application FastAPI SuiviColis.

Configure l'instance FastAPI, le middleware CORS, les gestionnaires d'erreurs
qui traduisent les exceptions du domaine en ActionResult, et inclut les
routeurs de chaque module.
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from suivicolis import __version__
from suivicolis.auth.router import auth_router
from suivicolis.clients.router import client_router
from suivicolis.config import settings
from suivicolis.core.exceptions import SuiviColisException
from suivicolis.core.schemas import ActionResult
from suivicolis.database import create_tables
from suivicolis.orders.router import order_router, public_router
from suivicolis.scanner.router import scanner_router
from suivicolis.tarifs.router import tarif_router

# Configurer le logging
logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.AUTO_CREATE_TABLES:
        logger.info("Création des tables au démarrage.")
        await create_tables()
    yield


app = FastAPI(
    title="SuiviColis API",
    description="API multi-organisations de suivi de colis: commandes, QR codes de retrait et notifications.",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["Content-Range"],
)


def _result_response(status_code: int, result: ActionResult, headers=None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=result.model_dump(mode="json"), headers=headers)


@app.exception_handler(SuiviColisException)
async def domain_exception_handler(request: Request, exc: SuiviColisException):
    if exc.status_code >= 500:
        logger.error(f"{exc.kind} sur {request.method} {request.url.path}: {exc.message}")
    else:
        logger.info(f"{exc.kind} sur {request.method} {request.url.path}: {exc.message}")
    errors = getattr(exc, "errors", None)
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return _result_response(exc.status_code, ActionResult.fail(exc.message, kind=exc.kind, errors=errors), headers)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = [f"{'.'.join(str(p) for p in err.get('loc', ()))}: {err.get('msg')}" for err in exc.errors()]
    return _result_response(422, ActionResult.fail("Données invalides", kind="ValidationError", errors=errors))


@app.exception_handler(Exception)
async def unexpected_exception_handler(request: Request, exc: Exception):
    logger.error(f"Erreur inattendue sur {request.method} {request.url.path}: {exc}", exc_info=True)
    return _result_response(500, ActionResult.fail(settings.INTERNAL_ERROR_MSG))


# ======================================================
# Inclure les routeurs
# ======================================================
app.include_router(auth_router, prefix=f"{settings.API_V1_PREFIX}/auth", tags=["Authentification"])
app.include_router(client_router, prefix=f"{settings.API_V1_PREFIX}/clients", tags=["Clients"])
app.include_router(tarif_router, prefix=f"{settings.API_V1_PREFIX}/tarifs", tags=["Tarifs"])
app.include_router(order_router, prefix=f"{settings.API_V1_PREFIX}/commandes", tags=["Commandes"])
app.include_router(scanner_router, prefix=f"{settings.API_V1_PREFIX}/scanner", tags=["Scanner"])
app.include_router(public_router, prefix=f"{settings.API_V1_PREFIX}/qr", tags=["Retrait public"])


@app.get("/", tags=["Root"])
async def read_root():
    return {"message": "Bienvenue sur l'API SuiviColis"}
