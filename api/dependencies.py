"""API Dependencies - Authentication"""
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError

from domain.auth import User, UserInDB
from domain.value_objects import Actor
from infrastructure.security import decode_access_token, get_password_hash
from api.schemas import TokenData

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="token")

# Mock user directory; account management lives in the user service
_fake_users_db = {
    "admin": {
        "username": "admin",
        "full_name": "Admin User",
        "email": "admin@example.com",
        "plain_password": "admin123",  # Will be hashed on first access
        "role": "Admin",
        "disabled": False,
        "user_id": "123e4567-e89b-12d3-a456-426614174000"
    },
    "staff": {
        "username": "staff",
        "full_name": "Library Staff",
        "email": "staff@example.com",
        "plain_password": "staff123",
        "role": "Staff",
        "disabled": False,
        "user_id": "123e4567-e89b-12d3-a456-426614174001"
    },
    "student": {
        "username": "student",
        "full_name": "Juan Dela Cruz",
        "email": "student@example.com",
        "plain_password": "student123",
        "role": "User",
        "id_number": "2021-00001",
        "department": "CCS",
        "disabled": False,
        "user_id": "123e4567-e89b-12d3-a456-426614174002"
    },
    "student2": {
        "username": "student2",
        "full_name": "Maria Santos",
        "email": "student2@example.com",
        "plain_password": "student123",
        "role": "User",
        "id_number": "2021-00002",
        "department": "CBA",
        "disabled": False,
        "user_id": "123e4567-e89b-12d3-a456-426614174003"
    },
}

# Public alias for backwards compatibility
fake_users_db = _fake_users_db

# Cache for hashed passwords
_password_hash_cache = {}


def _get_hashed_password(username: str) -> str:
    """Lazily hash passwords on first access"""
    if username not in _password_hash_cache:
        user = _fake_users_db.get(username)
        if user and "plain_password" in user:
            _password_hash_cache[username] = get_password_hash(user["plain_password"])
    return _password_hash_cache.get(username, "")


def get_user(db, username: str):
    if username in db:
        user_dict = db[username].copy()
        # Replace plain_password with hashed_password
        if "plain_password" in user_dict:
            user_dict["hashed_password"] = _get_hashed_password(username)
            del user_dict["plain_password"]
        return UserInDB(**user_dict)
    return None


async def get_current_user(token: str = Depends(oauth2_scheme)):
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = decode_access_token(token)
        username: str = payload.get("sub")
        if username is None:
            raise credentials_exception
        token_data = TokenData(username=username)
    except JWTError:
        raise credentials_exception

    user = get_user(_fake_users_db, username=token_data.username)
    if user is None:
        raise credentials_exception
    return user


async def get_current_active_user(current_user: User = Depends(get_current_user)):
    if current_user.disabled:
        raise HTTPException(status_code=400, detail="Inactive user")
    return current_user


async def get_current_actor(current_user: User = Depends(get_current_active_user)) -> Actor:
    return current_user.to_actor()


async def require_staff(actor: Actor = Depends(get_current_actor)) -> Actor:
    if not actor.is_staff():
        raise HTTPException(status_code=403, detail="Staff or Admin role required")
    return actor
