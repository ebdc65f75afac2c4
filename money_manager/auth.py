# money_manager/auth.py

from datetime import datetime, timedelta, timezone
from typing import Optional

import logging
import sqlite3

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from passlib.context import CryptContext

from money_manager.config import ACCESS_TOKEN_EXPIRE_MINUTES, ALGORITHM, SECRET_KEY
from money_manager.db import get_conn, now_iso
from money_manager.schemas import ProfileUpdate, UserCreate, UserLogin

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])

pwd_context = CryptContext(
    schemes=["pbkdf2_sha256"],
    deprecated="auto",
)
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)

_PUBLIC_USER_FIELDS = "id, name, email, currency, timezone, created_at, updated_at"


# ---- SECURITY HELPERS ----

def verify_password(plain_password: str, password_hash: str) -> bool:
    return pwd_context.verify(plain_password, password_hash)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire})
    encoded_jwt = jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)
    return encoded_jwt


def token_for(user_id: int) -> str:
    return create_access_token(data={"sub": str(user_id)})


# ---- DB HELPERS ----

def get_user_row_by_email(email: str) -> Optional[sqlite3.Row]:
    with get_conn() as con:
        return con.execute("SELECT * FROM users WHERE email = ?", (email.lower(),)).fetchone()


def get_user_by_id(user_id: int) -> Optional[dict]:
    with get_conn() as con:
        row = con.execute(
            f"SELECT {_PUBLIC_USER_FIELDS} FROM users WHERE id = ?", (user_id,)
        ).fetchone()
    return dict(row) if row else None


def create_user(name: str, email: str, password: str) -> dict:
    ts = now_iso()
    with get_conn() as con:
        cur = con.execute(
            """
            INSERT INTO users (name, email, password_hash, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?)
            """,
            (name, email.lower(), hash_password(password), ts, ts),
        )
        user_id = cur.lastrowid
    return get_user_by_id(user_id)


def user_id_from_token(token: Optional[str]) -> Optional[int]:
    """Decode a bearer token and return its subject, or None when it is unusable."""
    if not token:
        return None
    # Clients sometimes paste tokens with trailing newlines.
    token = token.strip()
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError:
        return None
    sub = payload.get("sub")
    if sub is None:
        return None
    try:
        return int(sub)
    except (TypeError, ValueError):
        return None


# ---- DEPENDENCY: CURRENT USER ----

def _credentials_exception(detail: str = "Token is not valid") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(token: Optional[str] = Depends(oauth2_scheme)) -> dict:
    if not token:
        raise _credentials_exception("No token, authorization denied")

    user_id = user_id_from_token(token)
    if user_id is None:
        raise _credentials_exception()

    user = get_user_by_id(user_id)
    if user is None:
        raise _credentials_exception()
    return user


# ---- ROUTES ----

@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(payload: UserCreate):
    if get_user_row_by_email(payload.email):
        raise HTTPException(status_code=400, detail="User already exists with this email")

    try:
        user = create_user(payload.name, payload.email, payload.password)
    except sqlite3.IntegrityError:
        # lost a race with a concurrent registration
        raise HTTPException(status_code=400, detail="User already exists with this email")

    logger.info("Registered user %s", user["id"])
    return {"token": token_for(user["id"]), "user": user}


@router.post("/login")
def login(payload: UserLogin):
    row = get_user_row_by_email(payload.email)
    if not row:
        raise HTTPException(status_code=400, detail="Invalid credentials")

    if not verify_password(payload.password, row["password_hash"]):
        raise HTTPException(status_code=400, detail="Invalid credentials")

    return {"token": token_for(row["id"]), "user": get_user_by_id(row["id"])}


@router.get("/me")
async def me(user: dict = Depends(get_current_user)):
    return {"user": user}


@router.put("/profile")
def update_profile(payload: ProfileUpdate, user: dict = Depends(get_current_user)):
    changes = payload.model_dump(exclude_unset=True, exclude_none=True)
    if changes:
        assignments = ", ".join(f"{field} = ?" for field in changes)
        with get_conn() as con:
            con.execute(
                f"UPDATE users SET {assignments}, updated_at = ? WHERE id = ?",
                (*changes.values(), now_iso(), user["id"]),
            )
    return {"message": "Profile updated successfully", "user": get_user_by_id(user["id"])}
