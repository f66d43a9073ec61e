import logging

from fastapi import APIRouter, Depends, HTTPException, status

from fineflex.core.security import create_access_token, get_password_hash, verify_password
from fineflex.db.ledger import LedgerStore
from fineflex.models.user import AuthResponse, UserCreate, UserLogin, UserPublic
from fineflex.routers.deps import get_ledger

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register(user: UserCreate, ledger: LedgerStore = Depends(get_ledger)):
    # Check if user already exists
    if ledger.get_user_by_email(user.email):
        raise HTTPException(status_code=400, detail="User already exists")

    created = ledger.create_user(
        email=user.email,
        password_hash=get_password_hash(user.password),
        username=user.username,
        monthly_income=user.monthly_income,
        savings_goal=user.savings_goal,
    )
    if not created:
        raise HTTPException(status_code=500, detail="Error saving user")

    logger.info(f"Registered user {created['id']}")
    return AuthResponse(
        message="User created successfully",
        token=create_access_token(data={"sub": str(created["id"])}),
        user=UserPublic.from_record(created),
    )


@router.post("/login", response_model=AuthResponse)
def login(login_data: UserLogin, ledger: LedgerStore = Depends(get_ledger)):
    user = ledger.get_user_by_email(login_data.email)

    if not user:
        logger.warning(f"User not found: {login_data.email}")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    if not verify_password(login_data.password, user["password_hash"]):
        logger.warning(f"Invalid password for user: {login_data.email}")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    logger.info(f"Login successful for user: {login_data.email}")
    return AuthResponse(
        message="Logged in successfully",
        token=create_access_token(data={"sub": str(user["id"])}),
        user=UserPublic.from_record(user),
    )
