from typing import List

from sqlmodel import Session, select

from storefront.database import transaction
from storefront.errors import AddressNotFound
from storefront.models.address import Address


def _owned_address(session: Session, user_id: int, address_id: int) -> Address:
    address = session.exec(
        select(Address).where(Address.id == address_id, Address.user_id == user_id)
    ).first()

    if not address:
        raise AddressNotFound()
    return address


def _clear_other_defaults(session: Session, user_id: int, keep_id=None):
    others = session.exec(
        select(Address).where(Address.user_id == user_id, Address.is_default == True)  # noqa: E712
    ).all()
    for other in others:
        if other.id != keep_id:
            other.is_default = False
            session.add(other)


def list_addresses(session: Session, user_id: int) -> List[Address]:
    return session.exec(
        select(Address).where(Address.user_id == user_id).order_by(Address.id)
    ).all()


def get_address(session: Session, user_id: int, address_id: int) -> Address:
    return _owned_address(session, user_id, address_id)


def create_address(session: Session, user_id: int, data) -> Address:
    address = Address(user_id=user_id, **data.model_dump())

    with transaction(session):
        if address.is_default:
            _clear_other_defaults(session, user_id)
        session.add(address)

    session.refresh(address)
    return address


def update_address(session: Session, user_id: int, address_id: int, data) -> Address:
    with transaction(session):
        address = _owned_address(session, user_id, address_id)

        for field, value in data.model_dump(exclude_unset=True, exclude_none=True).items():
            setattr(address, field, value)

        if address.is_default:
            _clear_other_defaults(session, user_id, keep_id=address.id)
        session.add(address)

    session.refresh(address)
    return address


def delete_address(session: Session, user_id: int, address_id: int) -> None:
    with transaction(session):
        address = _owned_address(session, user_id, address_id)
        session.delete(address)
