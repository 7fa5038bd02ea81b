import pytest

from pixel_crawler.rng import RNGManager, coerce_seed


def test_same_seed_same_streams():
    a = RNGManager(1234).context_rng("floor_layout", 3, 1)
    b = RNGManager(1234).context_rng("floor_layout", 3, 1)
    assert [a.random() for _ in range(5)] == [b.random() for _ in range(5)]


def test_domains_and_identifiers_are_independent():
    rngm = RNGManager(1234)
    seeds = {
        rngm.derive_seed("floor_layout", 1, 1),
        rngm.derive_seed("floor_layout", 2, 1),
        rngm.derive_seed("items", 1, 1),
    }
    assert len(seeds) == 3


def test_string_seed_is_stripped():
    assert RNGManager(" abc ").seed_hex == RNGManager("abc").seed_hex


def test_random_seed_when_none_given():
    assert RNGManager().seed_hex != RNGManager().seed_hex


def test_bool_seed_rejected():
    with pytest.raises(TypeError):
        RNGManager(True)


def test_coerce_seed():
    assert coerce_seed(None) is None
    assert coerce_seed("42") == 42
    assert coerce_seed("0x10") == 16
    assert coerce_seed("dungeon") == "dungeon"
