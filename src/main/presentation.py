from fastapi import APIRouter, FastAPI
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError

from src.auth import routers as auth_routers
from src.core.errors.exceptions import (
    CoreException,
    DataIntegrityException,
    InfrastructureException,
    MintingFailureException,
    StoreUnavailableException,
    TokenAlreadyInvalidatedException,
    TokenExpiredException,
    TokenNotFoundException,
    UnauthorizedException,
)
from src.core.errors.handlers import (
    CoreExceptionHandler,
    DataIntegrityExceptionHandler,
    InfrastructureExceptionHandler,
    MintingFailureExceptionHandler,
    RequestValidationExceptionHandler,
    StoreUnavailableExceptionHandler,
    TokenAlreadyInvalidatedExceptionHandler,
    TokenExpiredExceptionHandler,
    TokenNotFoundExceptionHandler,
    UnauthorizedExceptionHandler,
    ValidationErrorExceptionHandler,
    as_exception_handler,
)
from src.system import routers as system_routers


def include_routers(app: FastAPI) -> None:
    """
    Includes API routers into the FastAPI application.

    Parameters:
        app (FastAPI): The FastAPI application instance to which routers will
        be added.

    Returns:
        None
    """
    v1_router = APIRouter()
    v1_router.include_router(auth_routers.router, prefix="/auth", tags=["Auth"])

    app.include_router(v1_router, prefix="/v1")
    app.include_router(system_routers.router, tags=["System"])


def include_exceptions_handlers(app: FastAPI) -> None:
    """
    Registers exception handlers for the custom exceptions with the provided FastAPI
    application instance.

    Starlette resolves handlers by walking the exception MRO, so the specific
    token errors win over their ``UnauthorizedException`` base.

    Parameters:
        app (FastAPI): The FastAPI application instance to which the exception handlers
        will be added.

    Returns:
        None
    """
    app.add_exception_handler(
        InfrastructureException, as_exception_handler(InfrastructureExceptionHandler())
    )
    app.add_exception_handler(
        StoreUnavailableException,
        as_exception_handler(StoreUnavailableExceptionHandler()),
    )
    app.add_exception_handler(
        DataIntegrityException, as_exception_handler(DataIntegrityExceptionHandler())
    )
    app.add_exception_handler(
        RequestValidationError,
        as_exception_handler(RequestValidationExceptionHandler()),
    )
    app.add_exception_handler(
        ValidationError, as_exception_handler(ValidationErrorExceptionHandler())
    )
    app.add_exception_handler(
        CoreException,
        as_exception_handler(CoreExceptionHandler()),
    )
    app.add_exception_handler(
        UnauthorizedException, as_exception_handler(UnauthorizedExceptionHandler())
    )
    app.add_exception_handler(
        TokenNotFoundException, as_exception_handler(TokenNotFoundExceptionHandler())
    )
    app.add_exception_handler(
        TokenAlreadyInvalidatedException,
        as_exception_handler(TokenAlreadyInvalidatedExceptionHandler()),
    )
    app.add_exception_handler(
        TokenExpiredException, as_exception_handler(TokenExpiredExceptionHandler())
    )
    app.add_exception_handler(
        MintingFailureException,
        as_exception_handler(MintingFailureExceptionHandler()),
    )
