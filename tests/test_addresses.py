import pytest

from storefront.errors import AddressNotFound
from storefront.schemas.address_schemas import AddressCreate, AddressUpdate
from storefront.services import address_service


def address(**overrides):
    data = {
        "address_line1": "Calle Mayor 1",
        "city": "Madrid",
        "postal_code": "28013",
        "country": "ES",
    }
    data.update(overrides)
    return AddressCreate(**data)


def test_create_and_list(session, make_user):
    user = make_user()
    created = address_service.create_address(session, user.id, address())

    assert [a.id for a in address_service.list_addresses(session, user.id)] == [created.id]


def test_only_one_default_address(session, make_user):
    user = make_user()
    first = address_service.create_address(session, user.id, address(is_default=True))
    second = address_service.create_address(session, user.id, address(city="Sevilla", is_default=True))

    session.refresh(first)
    assert not first.is_default
    assert second.is_default

    address_service.update_address(session, user.id, first.id, AddressUpdate(is_default=True))
    session.refresh(second)
    assert not second.is_default


def test_update_keeps_unset_fields(session, make_user):
    user = make_user()
    created = address_service.create_address(session, user.id, address())

    updated = address_service.update_address(
        session, user.id, created.id, AddressUpdate(city="Bilbao")
    )

    assert updated.city == "Bilbao"
    assert updated.postal_code == "28013"


def test_addresses_are_private(session, make_user):
    owner = make_user()
    other = make_user()
    created = address_service.create_address(session, owner.id, address())

    with pytest.raises(AddressNotFound):
        address_service.get_address(session, other.id, created.id)
    with pytest.raises(AddressNotFound):
        address_service.delete_address(session, other.id, created.id)


def test_delete_is_hard(session, make_user):
    user = make_user()
    address_id = address_service.create_address(session, user.id, address()).id

    address_service.delete_address(session, user.id, address_id)

    assert address_service.list_addresses(session, user.id) == []
