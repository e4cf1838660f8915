import logging
from fastapi import APIRouter, Depends, HTTPException, status
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError
from app.schemas.auth import UserSignup, UserLogin, TokenResponse
from app.models.user import UserCreate, UserResponse
from app.repositories.user_repo import UserRepository
from app.core.auth import create_access_token, get_current_user
from app.core.security import verify_password
from app.db.mongo import get_db

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/signup", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
async def signup(user_data: UserSignup, db: AsyncIOMotorDatabase = Depends(get_db)):
    """
    Register a new user

    - **name**: Display name
    - **email**: User's email address (must be unique)
    - **password**: Password (minimum 8 characters)
    """
    user_repo = UserRepository(db)

    if await user_repo.get_user_by_email(user_data.email):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email already registered"
        )

    try:
        user = await user_repo.create_user(UserCreate(**user_data.model_dump()))
    except DuplicateKeyError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email already registered"
        )

    logger.info("User %s signed up", user.id)
    return TokenResponse(access_token=create_access_token(user.id), user=user.to_response())


@router.post("/login", response_model=TokenResponse)
async def login(credentials: UserLogin, db: AsyncIOMotorDatabase = Depends(get_db)):
    """Login with email and password"""
    user = await UserRepository(db).get_user_by_email(credentials.email)

    if not user or not verify_password(credentials.password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return TokenResponse(access_token=create_access_token(user.id), user=user.to_response())


@router.get("/me", response_model=UserResponse)
async def get_me(current_user: UserResponse = Depends(get_current_user)):
    """Get current user information"""
    return current_user
