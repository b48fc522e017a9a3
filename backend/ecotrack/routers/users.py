"""User API routes."""
import logging
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ecotrack.database import get_db
from ecotrack.models.user import User, UserRole
from ecotrack.schemas.user import UserCreate, UserOut, UserUpdate

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/", response_model=UserOut, status_code=status.HTTP_201_CREATED)
def create_user(payload: UserCreate, db: Session = Depends(get_db)):
    """Create a new user with a role."""
    if db.query(User).filter(User.email == payload.email).first():
        raise HTTPException(status_code=409, detail="Email already registered")
    user = User(name=payload.name, email=payload.email, role=UserRole(payload.role), eco_points=0)
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("Created user %s (%s, %s)", user.id, user.name, user.role.value)
    return user


@router.get("/", response_model=list[UserOut])
def list_users(db: Session = Depends(get_db)):
    """List all users."""
    return db.query(User).order_by(User.id).all()


@router.get("/{user_id}", response_model=UserOut)
def get_user(user_id: int, db: Session = Depends(get_db)):
    """Fetch a single user by ID."""
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


@router.patch("/{user_id}", response_model=UserOut)
def update_user(user_id: int, payload: UserUpdate, db: Session = Depends(get_db)):
    """Update profile fields (partial update). Eco-points are not editable here."""
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    updates = payload.model_dump(exclude_unset=True, exclude_none=True)
    if "email" in updates:
        taken = db.query(User).filter(User.email == updates["email"], User.id != user_id).first()
        if taken:
            raise HTTPException(status_code=409, detail="Email already registered")
    for field, value in updates.items():
        setattr(user, field, UserRole(value) if field == "role" else value)
    db.commit()
    db.refresh(user)
    logger.info("Updated user %s", user_id)
    return user
