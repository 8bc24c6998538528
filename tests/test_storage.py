import pytest
from passlib.context import CryptContext

from errors import DuplicateUsernameError
from models import AccountCreate, DogReportData
from storage import DEMO_DOGS, MemStorage


def make_report(payload, **overrides):
    data = dict(payload)
    data.update(overrides)
    return DogReportData(**data)


def test_create_then_get_returns_same_active_record(store, report_payload):
    created = store.create_dog(make_report(report_payload))

    fetched = store.get_dog(created.id)
    assert fetched == created
    assert fetched.status == "active"
    assert fetched.breed is None
    assert fetched.created_at is not None


def test_ids_increase_monotonically(store, report_payload):
    first = store.create_dog(make_report(report_payload))
    second = store.create_dog(make_report(report_payload, breed="Beagle"))
    assert second.id == first.id + 1


def test_get_unknown_dog_returns_none(store):
    assert store.get_dog(9999) is None


def test_update_status_unknown_id_leaves_table_alone(store, report_payload):
    store.create_dog(make_report(report_payload))
    before = store.count_dogs()

    assert store.update_dog_status(9999, "claimed") is None
    assert store.count_dogs() == before


def test_update_status_any_transition_allowed(store, report_payload):
    dog = store.create_dog(make_report(report_payload))

    assert store.update_dog_status(dog.id, "archived").status == "archived"
    assert store.update_dog_status(dog.id, "active").status == "active"
    assert store.update_dog_status(dog.id, "claimed").status == "claimed"
    assert store.get_dog(dog.id).status == "claimed"


def test_bootstrap_admin_is_only_admin(store):
    admin = store.get_account_by_username("admin")
    assert admin is not None
    assert admin.is_admin is True
    assert store.get_account(admin.id) is admin


def test_created_accounts_are_not_admin(store):
    account = store.create_account(AccountCreate(username="volunteer", password="volunteer-pass"))
    assert account.is_admin is False
    assert store.get_account_by_username("volunteer") is account


def test_duplicate_username_rejected(store):
    store.create_account(AccountCreate(username="volunteer", password="one"))
    with pytest.raises(DuplicateUsernameError):
        store.create_account(AccountCreate(username="volunteer", password="two"))


def test_passwords_stored_as_salted_hash(store):
    one = store.create_account(AccountCreate(username="a", password="same-password"))
    two = store.create_account(AccountCreate(username="b", password="same-password"))

    assert one.password_hash != "same-password"
    assert one.password_hash != two.password_hash
    assert CryptContext(schemes=["pbkdf2_sha256"]).verify("same-password", one.password_hash)


def test_verify_credentials(store):
    store.create_account(AccountCreate(username="volunteer", password="volunteer-pass"))

    assert store.verify_credentials("volunteer", "volunteer-pass").username == "volunteer"
    assert store.verify_credentials("volunteer", "wrong") is None
    assert store.verify_credentials("nobody", "volunteer-pass") is None


def test_demo_seed():
    seeded = MemStorage(seed_demo=True)
    assert seeded.count_dogs() == len(DEMO_DOGS)
    assert {d.breed for d in seeded.list_dogs()} == {d["breed"] for d in DEMO_DOGS}
    assert all(d.status == "active" for d in seeded.list_dogs())

    empty = MemStorage(seed_demo=False)
    assert empty.count_dogs() == 0
    assert empty.get_account(1).is_admin
