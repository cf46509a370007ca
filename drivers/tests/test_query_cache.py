from drivers.services.query_cache import cached_query, invalidate


def counter():
    calls = []

    def fetch():
        calls.append(1)
        return {"n": len(calls)}

    return calls, fetch


def test_hit_after_first_fetch():
    calls, fetch = counter()
    assert cached_query("companies", None, 60, fetch, token="t") == {"n": 1}
    assert cached_query("companies", None, 60, fetch, token="t") == {"n": 1}
    assert len(calls) == 1


def test_keys_depend_on_params_and_token():
    calls, fetch = counter()
    cached_query("contracts", {"page": 1}, 60, fetch, token="t")
    cached_query("contracts", {"page": 2}, 60, fetch, token="t")
    cached_query("contracts", {"page": 1}, 60, fetch, token="other")
    assert len(calls) == 3


def test_invalidate_drops_namespace_only():
    calls, fetch = counter()
    cached_query("contracts", None, 60, fetch)
    cached_query("companies", None, 60, fetch)
    invalidate("contracts")
    cached_query("contracts", None, 60, fetch)
    cached_query("companies", None, 60, fetch)
    assert len(calls) == 3


def test_none_is_not_cached():
    calls = []

    def fetch():
        calls.append(1)
        return None

    cached_query("current-user", None, 60, fetch)
    cached_query("current-user", None, 60, fetch)
    assert len(calls) == 2
