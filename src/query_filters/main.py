"""
Query Filters Demo API

Lists users with and without the global query filters, and exposes the soft
remove / restore flow plus an unfiltered settings table.
"""

import logging
import uuid
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException, Query
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from .config import DATABASE_URL, SEED_DEMO_DATA, SQL_ECHO, configure_logging
from .execution import install_query_filters
from .models import Base, build_schema
from .seed import seed_users
from .users import SettingService, UserService

logger = logging.getLogger(__name__)

# ============================================================================
# Setup
# ============================================================================

engine = create_engine(
    DATABASE_URL,
    echo=SQL_ECHO,
    connect_args={"check_same_thread": False} if "sqlite" in DATABASE_URL else {},
)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

schema = build_schema()
install_query_filters(SessionLocal, schema)

# Create tables
try:
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created successfully")
except Exception as e:
    logger.error(f"Failed to create database tables: {e}")
    raise


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    logger.info("Starting query filters demo (%r)", schema)
    if SEED_DEMO_DATA:
        with SessionLocal() as db:
            seed_users(db)
    yield


app = FastAPI(
    title="Query Filters Demo API",
    description="Global soft-delete query filters applied through the ORM",
    version="1.0.0",
    lifespan=lifespan,
)


# ============================================================================
# Dependency Injection
# ============================================================================


def get_db():
    """Get database session"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


# ============================================================================
# Health Check
# ============================================================================


@app.get("/health", tags=["Health"])
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "service": "query-filters"}


# ============================================================================
# User Endpoints
# ============================================================================


@app.get("/", tags=["Users"])
async def index(db: Session = Depends(get_db)):
    """Visible users next to every stored user"""
    users, _ = UserService.list_users(db=db)
    all_users, _ = UserService.list_users(db=db, include_removed=True)
    return {
        "users": [u.to_dict() for u in users],
        "all_users": [u.to_dict() for u in all_users],
    }


@app.get("/users", tags=["Users"])
async def list_users(
    include_removed: bool = False,
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
):
    """Get users; removed ones only when include_removed is set"""
    users, total = UserService.list_users(
        db=db,
        include_removed=include_removed,
        limit=limit,
        offset=offset,
    )
    return {
        "users": [u.to_dict() for u in users],
        "total": total,
        "limit": limit,
        "offset": offset,
    }


@app.get("/users/removed", tags=["Users"])
async def list_removed_users(db: Session = Depends(get_db)):
    """Soft-removed users"""
    users = UserService.list_removed_users(db=db)
    return {"users": [u.to_dict() for u in users], "total": len(users)}


@app.post("/users", tags=["Users"], status_code=201)
async def create_user(
    user_name: Optional[str] = None,
    email: Optional[str] = None,
    name: Optional[str] = None,
    db: Session = Depends(get_db),
):
    """
    Create a user

    - **user_name**: Login name; users without one are hidden by the query filter
    - **email**: Contact address
    - **name**: Display name
    """
    try:
        user = UserService.create_user(db=db, user_name=user_name, email=email, name=name)
        return user.to_dict()
    except Exception as e:
        logger.error(f"Error creating user: {str(e)}")
        raise HTTPException(status_code=400, detail=str(e))


@app.get("/users/{user_id}", tags=["Users"])
async def get_user(user_id: uuid.UUID, db: Session = Depends(get_db)):
    """Get a visible user"""
    user = UserService.get_user(db=db, user_id=user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user.to_dict()


@app.delete("/users/{user_id}", tags=["Users"])
async def remove_user(user_id: uuid.UUID, db: Session = Depends(get_db)):
    """Soft remove a user"""
    success = UserService.remove_user(db=db, user_id=user_id)
    if not success:
        raise HTTPException(status_code=404, detail="User not found")
    return {"message": "User removed"}


@app.post("/users/{user_id}/restore", tags=["Users"])
async def restore_user(user_id: uuid.UUID, db: Session = Depends(get_db)):
    """Restore a soft-removed user"""
    user = UserService.restore_user(db=db, user_id=user_id)
    if not user:
        raise HTTPException(status_code=404, detail="Removed user not found")
    return user.to_dict()


# ============================================================================
# Setting Endpoints
# ============================================================================


@app.get("/settings", tags=["Settings"])
async def list_settings(db: Session = Depends(get_db)):
    """Get all settings"""
    settings = SettingService.get_settings(db=db)
    return {"settings": [s.to_dict() for s in settings], "total": len(settings)}


@app.put("/settings/{key}", tags=["Settings"])
async def put_setting(key: str, value: Optional[str] = None, db: Session = Depends(get_db)):
    """Create or update a setting"""
    setting = SettingService.set_setting(db=db, key=key, value=value)
    return setting.to_dict()
