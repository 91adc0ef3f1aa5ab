"""Tests for the case-insensitive header store."""

import httpx
import pytest

from httpchain import Head, canonical_key


@pytest.mark.parametrize(
    "key, expected",
    [
        ("content-type", "Content-Type"),
        ("CONTENT-TYPE", "Content-Type"),
        ("x-request-id", "X-Request-Id"),
        ("One", "One"),
        ("", ""),
        ("bad key", "bad key"),
        ("ünicode", "ünicode"),
    ],
)
def test_canonical_key(key, expected):
    assert canonical_key(key) == expected
    assert canonical_key(canonical_key(key)) == expected


def test_get_prefers_exact_key_then_canonical():
    assert Head().get("one") == ""
    assert Head({"one": None, "One": None}).get("one") == ""
    assert Head({"one": [], "One": []}).get("one") == ""
    assert Head({"one": ["two"], "One": ["three"]}).get("one") == "two"
    assert Head({"One": ["three"]}).get("one") == "three"
    assert Head({"one": ["two"], "One": ["three"]}).get("One") == "three"


def test_values_distinguishes_absent_from_empty():
    assert Head().values("one") is None
    assert Head({"one": None, "One": None}).values("one") is None
    assert Head({"one": []}).values("one") == []
    assert Head({"One": []}).values("one") == []
    assert Head({"one": ["two"], "One": ["three"]}).values("one") == ["two"]
    assert Head({"One": ["three"]}).values("one") == ["three"]


def test_has():
    assert not Head().has("one")
    assert Head({"one": None}).has("one")
    assert Head({"One": None}).has("one")
    assert not Head({"one": None}).has("One")
    assert Head({"One": None}).has("One")
    assert "one" in Head({"One": ["x"]})
    assert 1 not in Head({"One": ["x"]})


@pytest.mark.parametrize(
    "src, key, expected",
    [
        ({}, "one", {}),
        ({"two": ["three"]}, "one", {"two": ["three"]}),
        ({"one": None, "One": None}, "one", {}),
        ({"One": None}, "one", {}),
        ({"one": None, "One": None}, "One", {"one": None}),
        ({"one": None, "two": ["three"]}, "One", {"one": None, "two": ["three"]}),
        ({"One": None, "two": ["three"]}, "One", {"two": ["three"]}),
    ],
)
def test_delete(src, key, expected):
    head = Head(src)
    assert head.delete(key) is head
    assert head == expected
    assert head.delete(key) == expected


def test_delete_on_missing_header_does_not_allocate():
    head = Head()
    head.delete("one")
    assert len(head) == 0


@pytest.mark.parametrize(
    "src, key, value, expected",
    [
        ({}, "", "", {"": [""]}),
        ({}, "one", "two", {"One": ["two"]}),
        ({"one": ["two"], "One": ["three"]}, "One", "four", {"one": ["two"], "One": ["four"]}),
        ({"one": ["two"]}, "One", "four", {"one": ["two"], "One": ["four"]}),
        ({"one": ["two"], "One": ["three"]}, "one", "four", {"One": ["four"]}),
    ],
)
def test_set(src, key, value, expected):
    head = Head(src)
    assert head.set(key, value) is head
    assert head == expected


def test_set_does_not_mutate_previous_list():
    stored = ["two"]
    head = Head({"One": stored})
    head.set("One", "three")
    assert head == {"One": ["three"]}
    assert stored == ["two"]


def test_add_merges_canonical_then_exact_then_new():
    head = Head({"One": ["a"], "one": ["b"]})
    head.add("one", "c")
    assert head == {"One": ["a", "b", "c"]}


def test_add_appends_without_mutating_previous_list():
    stored = ["a"]
    head = Head({"X-Tag": stored})
    head.add("x-tag", "b").add("X-TAG", "c")
    assert head.values("X-Tag") == ["a", "b", "c"]
    assert stored == ["a"]


@pytest.mark.parametrize(
    "src, key, values, expected",
    [
        ({"one": ["two"]}, "one", [], {}),
        ({"one": ["two"]}, "One", [], {"one": ["two"]}),
        ({"one": ["two"], "three": ["four"]}, "one", [], {"three": ["four"]}),
        ({"one": ["two"]}, "one", ["three", "four"], {"One": ["three", "four"]}),
        ({"one": ["two"]}, "One", ["three", "four"], {"one": ["two"], "One": ["three", "four"]}),
        (
            {"one": ["two"], "three": ["four"]},
            "one",
            ["five", "six"],
            {"three": ["four"], "One": ["five", "six"]},
        ),
    ],
)
def test_replace(src, key, values, expected):
    head = Head(src)
    assert head.replace(key, *values) is head
    assert head == expected


def test_replace_with_no_values_equals_delete():
    replaced = Head({"one": ["two"], "One": ["x"]}).replace("one")
    deleted = Head({"one": ["two"], "One": ["x"]}).delete("one")
    assert replaced == deleted == {}


def test_patch():
    assert Head().patch(None) == {}
    assert Head().patch({}) == {}
    assert Head({"one": ["two"]}).patch({"one": ["three"]}) == {"One": ["three"]}
    assert Head({"one": ["two"], "three": ["four"]}).patch({"one": ["five"]}) == {
        "One": ["five"],
        "three": ["four"],
    }
    assert Head({"one": ["two"], "three": ["four"]}).patch(
        {"one": ["five"], "three": ["six", "seven"]}
    ) == {"One": ["five"], "Three": ["six", "seven"]}


def test_patch_with_empty_values_deletes():
    assert Head({"One": ["two"], "Three": ["four"]}).patch({"one": []}) == {"Three": ["four"]}


def test_wrapped_dict_is_aliased():
    raw = {"one": ["two"]}
    head = Head(raw)
    head.set("x-id", "1")
    assert raw == {"one": ["two"], "X-Id": ["1"]}
    assert head.header() is raw


def test_clone_is_deep():
    src = Head({"one": ["two"]})
    tar = src.clone()
    tar.header()["one"][0] = "three"
    tar.set("four", "five")
    assert src == {"one": ["two"]}
    assert tar == {"one": ["three"], "Four": ["five"]}


def test_httpx_conversion_keeps_value_order():
    head = Head().add("accept", "a").add("Accept", "b").set("x-id", "1")
    headers = head.to_httpx()
    assert headers.get_list("accept") == ["a", "b"]
    assert headers["x-id"] == "1"

    back = Head.from_httpx(httpx.Headers([("content-type", "text/plain"), ("x-tag", "1"), ("X-Tag", "2")]))
    assert back == {"Content-Type": ["text/plain"], "X-Tag": ["1", "2"]}


def test_getitem():
    head = Head({"One": ["two"]})
    assert head["one"] == ["two"]
    with pytest.raises(KeyError):
        head["missing"]


@pytest.mark.parametrize("write_key, read_key", [("x-tag", "X-Tag"), ("X-TAG", "x-tag"), ("X-Tag", "X-TAG")])
def test_spellings_of_one_key_are_interchangeable(write_key, read_key):
    head = Head().add(write_key, "a").add(read_key, "b")
    assert head.get(write_key) == head.get(read_key) == "a"
    assert head.values(write_key) == head.values(read_key) == ["a", "b"]
    assert head.has(read_key)
    assert head.delete(read_key) == {}
