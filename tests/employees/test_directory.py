from __future__ import annotations

import pytest

from employee_directory.core.enums import Role
from employee_directory.core.exceptions import (
    AccessDeniedError,
    ConflictError,
    InternalError,
    NotFoundError,
    ValidationError,
)
from employee_directory.employees.filters import EmployeeFilter
from employee_directory.users.model import Principal

ANN = Principal(username="ann", role=Role.EMPLOYEE)


def test_create_then_get_round_trip(directory, admin, make_input, fixed_now):
    data = make_input(email="ann@example.com", phone="0123456789", subjects=["Math", "Physics"])

    created = directory.create(data, admin)
    fetched = directory.get_by_id(created.employee_id, admin)

    assert fetched.name == "Ann"
    assert fetched.age == 25
    assert fetched.class_name == "10A"
    assert fetched.subjects == ("Math", "Physics")
    assert fetched.email == "ann@example.com"
    assert fetched.phone == "0123456789"
    assert fetched.attendance_records() == []
    assert fetched.created_at == fixed_now
    assert fetched.updated_at == fixed_now


def test_list_by_class_name_scenario(directory, admin, make_input):
    directory.create(make_input(name="Ann", age=25, class_name="10A", subjects=["Math"]), admin)
    directory.create(make_input(name="Bob", class_name="11B"), admin)

    page = directory.list(EmployeeFilter(class_name="10A"), admin, page=0, size=10)

    assert [e.name for e in page.content] == ["Ann"]
    info = page.page_info()
    assert info.page_number == 0
    assert info.total_elements == 1
    assert info.has_next is False
    assert info.has_previous is False


def test_empty_filter_counts_same_as_unfiltered(directory, admin, make_input):
    for i in range(3):
        directory.create(make_input(name=f"Emp {i}"), admin)

    unfiltered = directory.list(None, admin)
    empty = directory.list(EmployeeFilter(), admin)

    assert empty.total_elements == unfiltered.total_elements == 3


def test_pagination_metadata_is_consistent(directory, admin, make_input):
    for i in range(5):
        directory.create(make_input(name=f"Emp {i}", age=20 + i), admin)

    first = directory.list(None, admin, page=0, size=2, sort_by="age", sort_dir="desc")
    last = directory.list(None, admin, page=2, size=2, sort_by="age", sort_dir="DESC")

    assert [e.age for e in first.content] == [24, 23]
    assert first.total_pages == 3
    assert first.has_next and not first.has_previous
    assert [e.age for e in last.content] == [20]
    assert not last.has_next and last.has_previous


def test_unknown_sort_direction_defaults_to_ascending(directory, admin, make_input):
    directory.create(make_input(name="Zed"), admin)
    directory.create(make_input(name="Amy"), admin)

    page = directory.list(None, admin, sort_by="name", sort_dir="sideways")

    assert [e.name for e in page.content] == ["Amy", "Zed"]


@pytest.mark.parametrize(
    "kwargs, field",
    [
        (dict(size=0), "size"),
        (dict(size=-1), "size"),
        (dict(size=1000), "size"),
        (dict(page=-1), "page"),
        (dict(sort_by="password"), "sortBy"),
    ],
)
def test_list_rejects_bad_paging(directory, admin, kwargs, field):
    with pytest.raises(ValidationError) as exc:
        directory.list(None, admin, **kwargs)

    assert exc.value.field == field


def test_duplicate_email_on_create_is_conflict(directory, admin, make_input):
    directory.create(make_input(email="x@y.com"), admin)

    with pytest.raises(ConflictError):
        directory.create(make_input(name="Other", email="x@y.com"), admin)


def test_duplicate_email_on_update_is_conflict(directory, admin, make_input):
    directory.create(make_input(email="x@y.com"), admin)
    other = directory.create(make_input(name="Other", email="z@y.com"), admin)

    with pytest.raises(ConflictError):
        directory.update(other.employee_id, make_input(name="Other", email="x@y.com"), admin)


def test_update_keeping_own_email_is_allowed(directory, admin, make_input):
    created = directory.create(make_input(email="x@y.com"), admin)

    updated = directory.update(created.employee_id, make_input(name="Annie", email="x@y.com"), admin)

    assert updated.name == "Annie"


def test_create_validates_input(directory, admin, make_input):
    with pytest.raises(ValidationError) as exc:
        directory.create(make_input(age=17), admin)

    assert exc.value.field == "age"


def test_create_requires_admin(directory, make_input):
    with pytest.raises(AccessDeniedError):
        directory.create(make_input(), ANN)


def test_update_is_full_replace_and_refreshes_updated_at(directory, admin, make_input, clock):
    created = directory.create(make_input(email="a@b.com", phone="0123456789", subjects=["Math", "Art"]), admin)
    later = clock.advance(120)

    updated = directory.update(created.employee_id, make_input(name="Ann B", subjects=["Chem"]), admin)

    assert updated.name == "Ann B"
    assert updated.subjects == ("Chem",)
    assert updated.email is None
    assert updated.phone is None
    assert updated.created_at == created.created_at
    assert updated.updated_at == later


def test_update_evicts_cached_copy(directory, admin, make_input, cache):
    created = directory.create(make_input(), admin)
    directory.get_by_id(created.employee_id, admin)
    assert created.employee_id in cache

    directory.update(created.employee_id, make_input(name="Changed"), admin)

    assert created.employee_id not in cache
    assert directory.get_by_id(created.employee_id, admin).name == "Changed"


def test_get_by_id_reads_through_cache(directory, admin, make_input, employees_repo):
    created = directory.create(make_input(), admin)
    calls_before = employees_repo.get_calls

    directory.get_by_id(created.employee_id, admin)
    directory.get_by_id(created.employee_id, admin)

    assert employees_repo.get_calls == calls_before + 1


def test_create_evicts_whole_cache(directory, admin, make_input, cache):
    first = directory.create(make_input(), admin)
    directory.get_by_id(first.employee_id, admin)
    assert first.employee_id in cache

    directory.create(make_input(name="Bob"), admin)

    assert len(cache) == 0


def test_delete_then_get_is_not_found_and_not_cached(directory, admin, make_input):
    created = directory.create(make_input(), admin)
    directory.get_by_id(created.employee_id, admin)

    assert directory.delete(created.employee_id, admin) is True

    for _ in range(2):
        with pytest.raises(NotFoundError):
            directory.get_by_id(created.employee_id, admin)


def test_delete_unknown_id_is_not_found(directory, admin):
    with pytest.raises(NotFoundError):
        directory.delete(999, admin)


def test_delete_requires_admin(directory, admin, make_input):
    created = directory.create(make_input(), admin)

    with pytest.raises(AccessDeniedError):
        directory.delete(created.employee_id, ANN)


def test_failed_write_keeps_cache_entry(directory, admin, make_input, cache, employees_repo):
    created = directory.create(make_input(), admin)
    directory.get_by_id(created.employee_id, admin)
    employees_repo.fail_writes = True

    with pytest.raises(InternalError):
        directory.update(created.employee_id, make_input(name="Nope"), admin)

    assert created.employee_id in cache
    assert cache.get(created.employee_id).name == "Ann"


def test_get_unknown_id_is_not_found(directory, admin):
    with pytest.raises(NotFoundError):
        directory.get_by_id(42, admin)


def test_employee_sees_own_record_only(directory, admin, make_input, employees_repo):
    own = directory.create(make_input(name="Ann"), admin)
    other = directory.create(make_input(name="Bob"), admin)
    employees_repo.owners[own.employee_id] = "ann"

    assert directory.get_by_id(own.employee_id, ANN).name == "Ann"
    with pytest.raises(AccessDeniedError):
        directory.get_by_id(other.employee_id, ANN)


def test_employee_cannot_update_unlinked_record(directory, admin, make_input):
    created = directory.create(make_input(), admin)

    with pytest.raises(AccessDeniedError):
        directory.update(created.employee_id, make_input(name="Hijack"), ANN)


def test_employee_list_is_scoped_to_own_record(directory, admin, make_input, employees_repo):
    own = directory.create(make_input(name="Ann"), admin)
    directory.create(make_input(name="Bob"), admin)
    employees_repo.owners[own.employee_id] = "ann"

    page = directory.list(EmployeeFilter(), ANN)

    assert [e.employee_id for e in page.content] == [own.employee_id]
    assert page.total_elements == 1


def test_directory_uses_the_cache_it_is_given(directory, admin, make_input, cache):
    created = directory.create(make_input(), admin)

    directory.get_by_id(created.employee_id, admin)

    assert created.employee_id in cache


def test_missing_ids_leave_no_key_locks(directory, admin, cache):
    for employee_id in range(1000, 1050):
        with pytest.raises(NotFoundError):
            directory.get_by_id(employee_id, admin)

    assert cache.locked_keys() == 0


def test_cached_attendance_cannot_be_edited_in_place(directory, admin, make_input, employees_repo):
    created = directory.create(make_input(), admin)
    cached = directory.get_by_id(created.employee_id, admin)

    with pytest.raises(TypeError):
        cached.attendance["2024-01-01"] = True

    assert dict(directory.get_by_id(created.employee_id, admin).attendance) == {}
    assert dict(employees_repo.get_by_id(created.employee_id).attendance) == {}
