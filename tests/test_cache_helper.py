import json

from mihrab.core.cache_helper import CacheHelper


def test_missing_key_returns_none(tmp_path):
    assert CacheHelper(str(tmp_path), "prayer_times").get_cached_content("nope") is None


def test_entries_written_on_an_earlier_day_are_still_served(tmp_path):
    cache = CacheHelper(str(tmp_path), "prayer_times")
    cache.save_to_cache("2024-01-01|21.42|39.83|MWL", {"Fajr": "05:40"})

    cache_file = cache._get_cache_file("2024-01-01|21.42|39.83|MWL")
    with open(cache_file) as f:
        stored = json.load(f)
    stored["date"] = "2000-01-01"
    with open(cache_file, "w") as f:
        json.dump(stored, f)

    assert cache.get_cached_content("2024-01-01|21.42|39.83|MWL") == {"Fajr": "05:40"}


def test_corrupt_entry_reads_as_miss(tmp_path):
    cache = CacheHelper(str(tmp_path))
    with open(cache._get_cache_file("k"), "w") as f:
        f.write("not json")

    assert cache.get_cached_content("k") is None
