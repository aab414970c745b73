from app.aggregates import SubResources


def test_append_assigns_ids_and_keeps_order():
    items = SubResources()
    first = items.append({"content": "a"})
    second = items.append({"content": "b"})

    assert first["id"] != second["id"]
    assert [i["content"] for i in items] == ["a", "b"]
    assert items.get(second["id"]) is second


def test_remove_by_identity():
    items = SubResources([{"id": "c1", "v": 1}, {"id": "c2", "v": 2}, {"id": "c3", "v": 3}])

    removed = items.remove("c2")

    assert removed["v"] == 2
    assert [i["id"] for i in items.to_list()] == ["c1", "c3"]
    assert items.get("c2") is None
    assert items.remove("c2") is None


def test_changes_through_get_show_up_in_to_list():
    items = SubResources([{"id": "c1", "content": "old"}])
    items.get("c1")["content"] = "new"
    assert items.to_list() == [{"id": "c1", "content": "new"}]


def test_source_list_is_not_mutated():
    source = [{"id": "c1"}]
    items = SubResources(source)
    items.append({"id": "c2"})
    items.get("c1")["touched"] = True
    assert source == [{"id": "c1"}]


def test_find_by():
    items = SubResources([{"id": "s1", "student": "u-1"}, {"id": "s2", "student": "u-2"}])
    assert items.find_by("student", "u-2")["id"] == "s2"
    assert items.find_by("student", "u-3") is None
    assert len(items) == 2
