"""Unit tests for the identifier source used by concepts."""

import concurrent.futures as cf

from conceptual.service_layer import fresh_id


def test_fresh_ids_are_ulid_strings():
    """Identifiers are 26-character Crockford base32 strings."""
    new = fresh_id()
    assert isinstance(new, str)
    assert len(new) == 26
    assert set(new) <= set("0123456789ABCDEFGHJKMNPQRSTVWXYZ")


def test_fresh_ids_never_repeat_across_threads():
    """Concurrent allocation never hands out the same identifier twice."""
    with cf.ThreadPoolExecutor(max_workers=8) as ex:
        batches = list(ex.map(lambda _: [fresh_id() for _ in range(200)], range(8)))

    ids = [i for batch in batches for i in batch]
    assert len(set(ids)) == len(ids)
