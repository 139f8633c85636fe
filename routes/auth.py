from fastapi import APIRouter, Depends
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from database import create_document, get_db
from errors import Conflict, NotFound, Unauthorized, envelope
from logger import logger
from schemas import LoginRequest, RegisterRequest, User
from security import TOKEN_COOKIE, create_token, get_current_user, hash_password, verify_password

router = APIRouter(prefix="/api/auth", tags=["auth"])

DUPLICATE_EMAIL = "User already exists with the same email! Please try again"


def public_user(user: dict) -> dict:
    return {
        "id": str(user["_id"]),
        "email": user.get("email"),
        "role": user.get("role", "user"),
        "userName": user.get("userName"),
    }


@router.post("/register")
def register(payload: RegisterRequest, db: Database = Depends(get_db)):
    logger.info("AUTH_REGISTER_REQUESTED", {"email": payload.email})
    if db["user"].find_one({"email": payload.email}):
        logger.warning("AUTH_REGISTER_USER_EXISTS", {"email": payload.email})
        raise Conflict(DUPLICATE_EMAIL)

    user = User(user_name=payload.user_name, email=payload.email, password=hash_password(payload.password))
    try:
        doc = create_document(db, "user", user)
    except DuplicateKeyError:
        logger.warning("AUTH_REGISTER_USER_EXISTS", {"email": payload.email})
        raise Conflict(DUPLICATE_EMAIL)

    logger.info("AUTH_REGISTER_SUCCESS", {"userId": str(doc["_id"]), "email": payload.email})
    return envelope(message="Registration successful")


@router.post("/login")
def login(payload: LoginRequest, db: Database = Depends(get_db)):
    logger.info("AUTH_LOGIN_REQUESTED", {"email": payload.email})
    user = db["user"].find_one({"email": payload.email})
    if not user:
        logger.warning("AUTH_LOGIN_USER_NOT_FOUND", {"email": payload.email})
        raise NotFound("User doesn't exist! Please register first")
    if not verify_password(payload.password, user.get("password", "")):
        logger.warning("AUTH_LOGIN_INVALID_PASSWORD", {"userId": str(user["_id"])})
        raise Unauthorized("Incorrect password! Please try again")

    token = create_token(user)
    logger.info("AUTH_LOGIN_SUCCESS", {"userId": str(user["_id"]), "role": user.get("role")})
    return envelope(message="Logged in successfully", token=token, user=public_user(user))


@router.post("/logout")
def logout():
    logger.info("AUTH_LOGOUT")
    response = envelope(message="Logged out successfully!")
    response.delete_cookie(TOKEN_COOKIE)
    return response


@router.get("/check-auth")
def check_auth(user: dict = Depends(get_current_user)):
    return envelope(
        message="Authenticated user!",
        user={k: user.get(k) for k in ("id", "role", "email", "userName")},
    )
