from datetime import datetime

from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, text

from storefront.database import get_session
from storefront.errors import DependencyError

router = APIRouter()


@router.get("/check")
def health_check(session: Session = Depends(get_session)):
    try:
        session.exec(text("SELECT 1"))
    except SQLAlchemyError as e:
        raise DependencyError("Database unavailable") from e

    return {"status": "ok", "database": "ok", "checked_at": datetime.utcnow()}
