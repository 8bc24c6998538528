import os
from datetime import datetime, timezone
from typing import Dict, List, Optional
from uuid import uuid4

from fastapi import Depends, FastAPI, File, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.middleware.sessions import SessionMiddleware
from starlette.status import HTTP_201_CREATED, HTTP_400_BAD_REQUEST, HTTP_500_INTERNAL_SERVER_ERROR

import settings
from errors import (
    ForbiddenError,
    InternalError,
    NotFoundError,
    PawFinderError,
    TooManyAttemptsError,
    UnauthorizedError,
    UploadRejectedError,
)
from models import AccountInDB, AccountPublic, DogInDB, DogReportData, LoginData, StatusUpdate
from sessions import SessionStore, start_pruning, stop_pruning
from storage import MemStorage

logger = settings.get_logger("pawfinder")

# --- File Upload Configuration ---
UPLOAD_DIR = settings.UPLOAD_DIR
if not os.path.exists(UPLOAD_DIR):
    os.makedirs(UPLOAD_DIR)
MAX_UPLOAD_FILES = settings.MAX_UPLOAD_FILES
MAX_UPLOAD_SIZE = settings.MAX_UPLOAD_SIZE
UPLOAD_CHUNK_SIZE = 64 * 1024

# --- Login Throttling ---
LOGIN_ATTEMPTS: Dict[str, List[float]] = {}
LOGIN_WINDOW = settings.LOGIN_WINDOW
LOGIN_MAX_ATTEMPTS = settings.LOGIN_MAX_ATTEMPTS

MAPBOX_ACCESS_TOKEN = settings.MAPBOX_ACCESS_TOKEN

# Key under which the opaque session token lives in the signed cookie
SESSION_TOKEN_KEY = "sid"

# --- App Setup ---
app = FastAPI(title="PawFinder")

app.add_middleware(
    SessionMiddleware,
    secret_key=settings.SESSION_SECRET,
    max_age=settings.SESSION_MAX_AGE,
    same_site=settings.SESSION_SAME_SITE,
    https_only=settings.SESSION_HTTPS_ONLY,
)

# Mount uploaded images
app.mount("/uploads", StaticFiles(directory=UPLOAD_DIR), name="uploads")

# --- Data Structures (in-memory, process lifetime) ---
storage = MemStorage()
session_store = SessionStore()


@app.on_event("startup")
def _start_session_pruning():
    if start_pruning(session_store):
        logger.info("Session sweeper started (every %ss)", settings.SESSION_PRUNE_INTERVAL)


@app.on_event("shutdown")
def _stop_session_pruning():
    stop_pruning()


# --- Error Handlers ---

# Path parameters as the client sees them in the URL pattern
PATH_PARAM_NAMES = {"dog_id": "id"}


def _field_errors(raw_errors) -> Dict[str, List[str]]:
    """Group pydantic error entries by (camelCase) field name for form re-display."""
    errors: Dict[str, List[str]] = {}
    for err in raw_errors:
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
        if err.get("loc", ())[:1] == ("path",):
            loc = [PATH_PARAM_NAMES.get(part, part) for part in loc]
        field = ".".join(loc) or "body"
        ctx = err.get("ctx") or {}
        # Validators raise ValueError with a ready-made message; prefer it over pydantic's prefix
        message = str(ctx["error"]) if "error" in ctx else err.get("msg", "Invalid value")
        errors.setdefault(field, []).append(message)
    return errors


@app.exception_handler(PawFinderError)
async def pawfinder_error_handler(request: Request, exc: PawFinderError):
    content = {"message": exc.message}
    if exc.errors:
        content["errors"] = exc.errors
    return JSONResponse(status_code=exc.status_code, content=content)


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=HTTP_500_INTERNAL_SERVER_ERROR, content={"message": "Internal server error"})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=HTTP_400_BAD_REQUEST,
        content={"message": "Invalid data", "errors": _field_errors(exc.errors())},
    )


# --- Auth Guards ---

def get_current_account(request: Request) -> Optional[AccountInDB]:
    """Return the account behind the request's session, or None when anonymous.

    A cookie whose server-side record is gone (logout, expiry, restart) is
    cleared so the client stops sending it.
    """
    token = request.session.get(SESSION_TOKEN_KEY)
    record = session_store.get(token)
    if record is None:
        if token:
            request.session.clear()
        return None
    return storage.get_account(record.account_id)


def require_authenticated(account: Optional[AccountInDB] = Depends(get_current_account)) -> AccountInDB:
    if account is None:
        raise UnauthorizedError("Unauthorized")
    return account


def require_admin(account: AccountInDB = Depends(require_authenticated)) -> AccountInDB:
    if not account.is_admin:
        raise ForbiddenError("Forbidden")
    return account


# --- Upload Helpers ---

def check_image_type(upload_file: UploadFile):
    extension = os.path.splitext(upload_file.filename or "")[1].lower()
    if upload_file.content_type not in settings.ALLOWED_IMAGE_TYPES or extension not in settings.ALLOWED_IMAGE_EXTENSIONS:
        raise UploadRejectedError("Only image files are allowed!")


def save_upload_file(upload_file: UploadFile) -> str:
    """Saves the uploaded file to UPLOAD_DIR under a unique name and returns that name.

    Files over MAX_UPLOAD_SIZE are removed again and rejected.
    """
    os.makedirs(UPLOAD_DIR, exist_ok=True)
    file_extension = os.path.splitext(upload_file.filename)[1].lower()
    unique_filename = f"{uuid4()}{file_extension}"
    file_path = os.path.join(UPLOAD_DIR, unique_filename)

    written = 0
    with open(file_path, "wb") as buffer:
        while True:
            chunk = upload_file.file.read(UPLOAD_CHUNK_SIZE)
            if not chunk:
                break
            written += len(chunk)
            if written > MAX_UPLOAD_SIZE:
                break
            buffer.write(chunk)

    if written > MAX_UPLOAD_SIZE:
        os.remove(file_path)
        raise UploadRejectedError(f"File '{upload_file.filename}' exceeds the {MAX_UPLOAD_SIZE // (1024 * 1024)}MB limit")
    return unique_filename


# --- 1. Dog Listing Endpoints ---

@app.get("/api/dogs", response_model=List[DogInDB], tags=["Dogs"])
def list_dogs(breed: Optional[str] = None, city: Optional[str] = None, query: Optional[str] = None):
    """Lists found dogs, newest first, optionally filtered by breed, city and free text."""
    try:
        if not any((breed, city, query)):
            return storage.list_dogs()
        return storage.list_dogs_with_filters(breed=breed, city=city, query=query)
    except Exception as exc:
        logger.exception("Failed to fetch dogs")
        raise InternalError("Failed to fetch dogs") from exc


@app.get("/api/dogs/{dog_id}", response_model=DogInDB, tags=["Dogs"])
def get_dog(dog_id: int):
    try:
        dog = storage.get_dog(dog_id)
    except Exception as exc:
        logger.exception("Failed to fetch dog %s", dog_id)
        raise InternalError("Failed to fetch dog details") from exc
    if dog is None:
        raise NotFoundError("Dog not found")
    return dog


@app.post("/api/dogs", response_model=DogInDB, status_code=HTTP_201_CREATED, tags=["Dogs"])
def create_dog(report: DogReportData):
    """Stores a found-dog report; it starts out active."""
    try:
        dog = storage.create_dog(report)
    except Exception as exc:
        logger.exception("Failed to create dog report")
        raise InternalError("Failed to create dog report") from exc
    logger.info("Dog report %s created (%s, %s)", dog.id, dog.breed or "unknown breed", dog.city)
    return dog


# --- 2. Admin Endpoints (PROTECTED) ---

@app.patch("/api/admin/dogs/{dog_id}/status", response_model=DogInDB, tags=["Admin Panel"])
def update_dog_status(dog_id: int, payload: StatusUpdate, admin: AccountInDB = Depends(require_admin)):
    try:
        current = storage.get_dog(dog_id)
        previous_status = current.status if current is not None else None
        updated = storage.update_dog_status(dog_id, payload.status)
    except Exception as exc:
        logger.exception("Failed to update status of dog %s", dog_id)
        raise InternalError("Failed to update dog status") from exc
    if updated is None:
        raise NotFoundError("Dog not found")
    logger.info("Admin %s changed dog %s status from %s to %s", admin.username, dog_id, previous_status, payload.status)
    return updated


# --- 3. Authentication Endpoints ---

@app.post("/api/login", tags=["Authentication"])
def process_login(request: Request, credentials: LoginData):
    # Rate limit check (per client host)
    client_host = request.client.host if request.client else "unknown"
    now_ts = datetime.now(timezone.utc).timestamp()
    # purge old attempts
    attempts = [ts for ts in LOGIN_ATTEMPTS.get(client_host, []) if now_ts - ts < LOGIN_WINDOW]
    if attempts:
        LOGIN_ATTEMPTS[client_host] = attempts
    else:
        LOGIN_ATTEMPTS.pop(client_host, None)
    if len(attempts) >= LOGIN_MAX_ATTEMPTS:
        raise TooManyAttemptsError("Too many login attempts")

    account = storage.verify_credentials(credentials.username, credentials.password)
    if account is None:
        # record failed attempt
        attempts.append(now_ts)
        LOGIN_ATTEMPTS[client_host] = attempts
        logger.warning("Failed login for '%s' from %s", credentials.username, client_host)
        raise UnauthorizedError("Invalid username or password")

    # successful login: reset attempts and rotate any existing session
    LOGIN_ATTEMPTS.pop(client_host, None)
    session_store.destroy(request.session.get(SESSION_TOKEN_KEY))
    request.session.clear()
    request.session[SESSION_TOKEN_KEY] = session_store.create(account.id)
    logger.info("Account '%s' logged in", account.username)
    return {"message": "Login successful", "user": AccountPublic.from_account(account).model_dump(by_alias=True)}


@app.post("/api/logout", tags=["Authentication"])
def process_logout(request: Request):
    """Drops the server-side session and clears the cookie. Safe to repeat."""
    if session_store.destroy(request.session.get(SESSION_TOKEN_KEY)):
        logger.info("Session logged out")
    request.session.clear()
    return {"message": "Logout successful"}


@app.get("/api/auth/status", tags=["Authentication"])
def auth_status(account: Optional[AccountInDB] = Depends(get_current_account)):
    if account is None:
        return {"authenticated": False}
    return {"authenticated": True, "user": AccountPublic.from_account(account).model_dump(by_alias=True)}


# --- 4. Upload & Config Endpoints ---

@app.post("/api/upload", tags=["Uploads"])
def upload_images(images: List[UploadFile] = File(...)):
    """Stores up to MAX_UPLOAD_FILES images and returns their public URLs.

    Either every file is stored or none is.
    """
    if len(images) > MAX_UPLOAD_FILES:
        raise UploadRejectedError(f"At most {MAX_UPLOAD_FILES} images can be uploaded at once")
    for image in images:
        check_image_type(image)

    saved: List[str] = []
    try:
        for image in images:
            saved.append(save_upload_file(image))
    except UploadRejectedError as exc:
        for name in saved:
            os.remove(os.path.join(UPLOAD_DIR, name))
        logger.warning("Upload rejected: %s", exc.message)
        raise

    logger.info("Stored %d uploaded image(s)", len(saved))
    return {"urls": [f"/uploads/{name}" for name in saved]}


@app.get("/api/config/mapbox", tags=["Config"])
def mapbox_config():
    if not MAPBOX_ACCESS_TOKEN:
        raise InternalError("MapBox token not configured")
    return {"token": MAPBOX_ACCESS_TOKEN}
