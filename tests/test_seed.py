import datetime as dt

from seed import default_catalog, generate_slots, seed_if_empty


def test_generate_slots_is_half_open():
    slots = list(generate_slots([dt.date(2026, 3, 5)], "Группа 2", "17:15", "18:15"))
    assert [s.time for s in slots] == ["17:15", "17:30", "17:45", "18:00"]
    assert all(s.user_name is None and s.secret_code is None for s in slots)


def test_generate_slots_empty_window():
    assert list(generate_slots([dt.date(2026, 3, 5)], "Группа 1", "10:00", "10:00")) == []


def test_default_catalog():
    catalog = default_catalog(2026)

    assert len(catalog) == 84
    keys = {(s.date, s.time, s.group_name) for s in catalog}
    assert len(keys) == len(catalog)
    assert {s.date.month for s in catalog} == {3}
    assert (dt.date(2026, 3, 6), "12:45", "Группа 1") in keys
    assert (dt.date(2026, 3, 6), "13:00", "Группа 1") not in keys


async def test_seed_only_fills_empty_table(store):
    assert await seed_if_empty(store, 2026) == 84
    assert await seed_if_empty(store, 2026) == 0
    assert await store.count() == 84
