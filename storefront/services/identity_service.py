import logging
from datetime import datetime
from typing import Tuple

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from storefront.database import transaction, upsert_insert
from storefront.errors import (
    EmailTaken,
    FederatedOnly,
    IncompleteAssertion,
    InvalidCredentials,
    UserNotFound,
)
from storefront.models.user import Role, User
from storefront.utils.google_auth import FederatedAssertion
from storefront.utils.hash import hash_password, verify_password
from storefront.utils.token import TokenService, TrustTier

logger = logging.getLogger(__name__)


def _touch_last_login(session: Session, user: User) -> User:
    with transaction(session):
        user.last_login = datetime.utcnow()
        session.add(user)
    session.refresh(user)
    return user


def _find_by_google_id(session: Session, external_id: str):
    return session.exec(
        select(User)
        .where(User.google_id == external_id)
        .execution_options(populate_existing=True)
    ).first()


def resolve_federated(session: Session, assertion: FederatedAssertion) -> User:
    """
    Map a verified provider identity onto a local user, creating it on first
    sign-in.

    Existing users are returned as stored: a changed email or name at the
    provider is not copied over.
    """
    if not assertion.email:
        raise IncompleteAssertion()

    user = _find_by_google_id(session, assertion.external_id)

    if user is None:
        now = datetime.utcnow()
        stmt = upsert_insert(session, User.__table__).values(
            google_id=assertion.external_id,
            email=assertion.email,
            name=assertion.name,
            password=None,
            role=Role.CUSTOMER,
            created_at=now,
        )
        # any unique conflict (google_id from a concurrent first login, or an
        # email that already belongs to a password account) is a no-op here
        with transaction(session):
            session.execute(stmt.on_conflict_do_nothing())

        user = _find_by_google_id(session, assertion.external_id)
        if user is None:
            logger.info("Federated sign-in refused: email belongs to a local account")
            raise EmailTaken("Email already registered with a password")

        logger.info(f"Created federated user {user.id}")

    return _touch_last_login(session, user)


def resolve_local(session: Session, email: str, password: str) -> User:
    user = session.exec(select(User).where(User.email == email)).first()

    if user is None:
        raise UserNotFound()

    if not user.password:
        raise FederatedOnly()

    if not verify_password(password, user.password):
        raise InvalidCredentials()

    return _touch_last_login(session, user)


def register(
    session: Session,
    tokens: TokenService,
    name: str,
    email: str,
    password: str,
) -> Tuple[User, str]:
    existing = session.exec(select(User).where(User.email == email)).first()
    if existing:
        raise EmailTaken()

    user = User(
        name=name,
        email=email,
        password=hash_password(password),
        role=Role.CUSTOMER,
    )

    try:
        with transaction(session):
            session.add(user)
    except IntegrityError as e:
        # lost a race against another registration of the same email
        raise EmailTaken() from e

    session.refresh(user)
    logger.info(f"Registered user {user.id}")

    return user, tokens.issue(user, TrustTier.PASSWORD)
