from clinicboost.models.enums import EvictionStrategy


class TestEvictionStrategy:
    def test_member_count(self):
        assert len(EvictionStrategy) == 3

    def test_is_str_enum(self):
        assert isinstance(EvictionStrategy.LRU, str)

    def test_value_access(self):
        assert EvictionStrategy.LRU.value == "lru"
        assert EvictionStrategy.LFU.value == "lfu"
        assert EvictionStrategy.FIFO.value == "fifo"

    def test_construction_from_value(self):
        assert EvictionStrategy("lfu") is EvictionStrategy.LFU
