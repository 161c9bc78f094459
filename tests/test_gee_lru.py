from peercache.gee_lru import LRUCache


def test_get():
    lru = LRUCache(0)
    lru.add("key1", "1234")
    assert lru.get("key1") == "1234"
    assert lru.get("key2") is None


def test_remove_oldest_on_overflow():
    k1, k2, k3 = "key1", "key2", "k3"
    v1, v2, v3 = "value1", "value2", "v3"
    capacity = len(k1 + k2 + v1 + v2)
    lru = LRUCache(capacity)
    lru.add(k1, v1)
    lru.add(k2, v2)
    lru.add(k3, v3)

    assert lru.get("key1") is None
    assert len(lru) == 2


def test_on_evicted():
    keys = []
    lru = LRUCache(10, lambda key, value: keys.append(key))
    lru.add("k1", "k1")
    lru.add("k2", "k2")
    lru.add("k3", "k3")
    lru.add("k4", "k4")
    assert keys == ["k1", "k2"]


def test_zero_capacity_is_unbounded():
    lru = LRUCache(0)
    for i in range(1000):
        lru.add(f"key{i}", f"value{i}")
    assert len(lru) == 1000
    assert lru.get("key0") == "value0"


def test_update_adjusts_size():
    lru = LRUCache(0)
    lru.add("key", "ab")
    lru.add("key", "abcdef")
    assert lru.nbytes == len("key") + len("abcdef")
    assert lru.get("key") == "abcdef"
    assert len(lru) == 1


def test_remove_oldest_on_empty_is_noop():
    evicted = []
    lru = LRUCache(10, lambda key, value: evicted.append(key))
    lru.remove_oldest()
    assert len(lru) == 0
    assert evicted == []


def test_oversized_entry_evicts_itself():
    lru = LRUCache(5)
    lru.add("key", "toolong")
    assert lru.get("key") is None
    assert lru.nbytes == 0


def test_many_entries_stay_within_capacity():
    lru = LRUCache(1024)
    for i in range(1000):
        lru.add(f"key{i}", f"value{i}")
    assert lru.nbytes <= 1024
    assert lru.get("key999") == "value999"
    assert lru.get("key0") is None