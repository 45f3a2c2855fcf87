# tests/test_user_plate_service.py
"""Plate ownership store against an in-memory database."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from datetime import time
from carblock.errors import NotFoundError
from carblock.models.user_plate import UserPlate
from carblock.services import user_plate_service as plates


def primaries(db, user_id):
    return db.query(UserPlate).filter(UserPlate.user_id == user_id, UserPlate.is_primary.is_(True)).all()


class TestCreateUserPlate:
    def test_new_primary_replaces_old(self, db, make_user):
        user = make_user("+79001234567", plate="A123BC777")
        plates.create_user_plate(db, user.id, "B456CD777", is_primary=True)

        rows = primaries(db, user.id)
        assert [r.plate for r in rows] == ["B456CD777"]

    def test_existing_plate_is_updated_not_duplicated(self, db, make_user):
        user = make_user("+79001234567")
        plates.create_user_plate(db, user.id, "A123BC777", departure_time=time(18, 30))
        plates.create_user_plate(db, user.id, "A123BC777", is_primary=True)

        rows = plates.find_by_user(db, user.id)
        assert len(rows) == 1
        assert rows[0].is_primary is True
        assert rows[0].departure_time == time(18, 30)   # kept, new value was null

    def test_departure_time_overwritten_when_given(self, db, make_user):
        user = make_user("+79001234567")
        plates.create_user_plate(db, user.id, "A123BC777", departure_time=time(18, 30))
        plates.create_user_plate(db, user.id, "A123BC777", departure_time=time(7, 5))
        assert plates.find_by_user(db, user.id)[0].departure_time == time(7, 5)


class TestSetPrimary:
    def test_exactly_one_primary(self, db, make_user):
        user = make_user("+79001234567", plate="A123BC777")
        second = plates.create_user_plate(db, user.id, "B456CD777")

        plates.set_primary(db, second.id, user.id)

        rows = primaries(db, user.id)
        assert len(rows) == 1
        assert rows[0].id == second.id

    def test_set_primary_twice_is_stable(self, db, make_user):
        user = make_user("+79001234567", plate="A123BC777")
        current = plates.find_primary_by_user(db, user.id)
        plates.set_primary(db, current.id, user.id)
        assert [r.id for r in primaries(db, user.id)] == [current.id]

    def test_other_users_plate_not_found(self, db, make_user):
        owner = make_user("+79001234567", plate="A123BC777")
        other = make_user("+79007654321", plate="B456CD777")
        plate_id = plates.find_primary_by_user(db, owner.id).id

        with pytest.raises(NotFoundError):
            plates.set_primary(db, plate_id, other.id)
        assert plates.find_primary_by_user(db, other.id).plate == "B456CD777"


class TestLookups:
    def test_find_by_user_primary_first(self, db, make_user):
        user = make_user("+79001234567")
        plates.create_user_plate(db, user.id, "A123BC777", is_primary=True)
        plates.create_user_plate(db, user.id, "B456CD777")
        assert [p.plate for p in plates.find_by_user(db, user.id)] == ["A123BC777", "B456CD777"]

    def test_find_by_plate_ignores_case_and_spaces(self, db, make_user):
        user = make_user("+79001234567", plate="A123BC777")
        assert [p.user_id for p in plates.find_by_plate(db, " a123bc777 ")] == [user.id]

    def test_shared_plate_has_several_owners(self, db, make_user):
        first = make_user("+79001234567", plate="A123BC777")
        second = make_user("+79007654321", plate="A123BC777")
        owners = {p.user_id for p in plates.find_by_plate(db, "A123BC777")}
        assert owners == {first.id, second.id}


class TestUpdateAndDelete:
    def test_update_departure_time_of_other_user_not_found(self, db, make_user):
        owner = make_user("+79001234567", plate="A123BC777")
        other = make_user("+79007654321")
        plate_id = plates.find_primary_by_user(db, owner.id).id
        with pytest.raises(NotFoundError):
            plates.update_departure_time(db, plate_id, other.id, time(9, 0))

    def test_delete(self, db, make_user):
        user = make_user("+79001234567", plate="A123BC777")
        plate_id = plates.find_primary_by_user(db, user.id).id
        plates.delete_user_plate(db, plate_id, user.id)
        assert plates.find_by_user(db, user.id) == []

    def test_delete_other_users_plate_not_found(self, db, make_user):
        owner = make_user("+79001234567", plate="A123BC777")
        other = make_user("+79007654321")
        plate_id = plates.find_primary_by_user(db, owner.id).id
        with pytest.raises(NotFoundError):
            plates.delete_user_plate(db, plate_id, other.id)
        assert plates.find_by_id(db, plate_id) is not None
