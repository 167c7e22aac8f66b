import re
from concurrent.futures import ThreadPoolExecutor
from itertools import count

import pytest

from modgraph_services.errors import ArtifactNotFoundError
from modgraph_services.store import ArtifactStore, random_identifier


def test_put_then_get_returns_same_bytes():
    store = ArtifactStore()
    identifier = store.put(b"<svg/>")

    assert store.get(identifier) == b"<svg/>"
    assert identifier in store
    assert len(store) == 1


def test_get_unknown_identifier_raises_not_found():
    store = ArtifactStore()

    with pytest.raises(ArtifactNotFoundError) as excinfo:
        store.get("5b9d37f5337909968412a123cfc00973")

    assert excinfo.value.identifier == "5b9d37f5337909968412a123cfc00973"
    assert isinstance(excinfo.value, KeyError)


def test_identical_payloads_get_distinct_identifiers():
    store = ArtifactStore()

    first = store.put(b"same")
    second = store.put(b"same")

    assert first != second
    assert len(store) == 2


def test_random_identifier_is_32_lowercase_hex():
    identifier = random_identifier()
    assert re.fullmatch(r"[0-9a-f]{32}", identifier)


def test_injected_generator_is_used():
    ticks = count()
    store = ArtifactStore(new_identifier=lambda: f"{next(ticks):032x}")

    assert store.put(b"a") == "0" * 32
    assert store.put(b"b") == "0" * 31 + "1"


def test_collision_draws_new_identifier_and_keeps_original():
    drawn = iter(["a" * 32, "a" * 32, "b" * 32])
    store = ArtifactStore(new_identifier=lambda: next(drawn))

    first = store.put(b"first")
    second = store.put(b"second")

    assert first == "a" * 32
    assert second == "b" * 32
    assert store.get(first) == b"first"
    assert store.get(second) == b"second"


def test_random_source_failure_propagates():
    def broken():
        raise OSError("entropy source unavailable")

    store = ArtifactStore(new_identifier=broken)

    with pytest.raises(OSError):
        store.put(b"data")
    assert len(store) == 0


def test_concurrent_puts_do_not_corrupt_entries():
    store = ArtifactStore()
    payloads = [f"<svg>{i}</svg>".encode() for i in range(200)]

    with ThreadPoolExecutor(max_workers=16) as pool:
        identifiers = list(pool.map(store.put, payloads))

    assert len(set(identifiers)) == len(payloads)
    assert len(store) == len(payloads)
    for identifier, payload in zip(identifiers, payloads):
        assert store.get(identifier) == payload


def test_stored_bytes_are_not_affected_by_caller_mutation():
    store = ArtifactStore()
    buffer = bytearray(b"<svg/>")
    identifier = store.put(buffer)

    buffer[:] = b"xxxxxx"

    assert store.get(identifier) == b"<svg/>"
