import numpy as np
import pytest
from pyboosters import EvenSplitPartitioner, PermutationPartitioner, RandomPartitioner
from pyboosters.exceptions import ConfigurationError, InvalidIndexError
from pyboosters.partition import make_partitioner


@pytest.mark.parametrize("cls", [RandomPartitioner, EvenSplitPartitioner, PermutationPartitioner])
@pytest.mark.parametrize("k", [2, 3, 7])
def test_partitions_have_two_non_empty_groups(cls, k):
    part = cls(seed=5)
    part.reset(k)
    for i in range(20):
        codes = part.new_partition(i)
        assert codes.shape == (k,)
        assert codes.any() and not codes.all()
    assert len(part) == 20


@pytest.mark.parametrize("cls", [RandomPartitioner, EvenSplitPartitioner, PermutationPartitioner])
def test_reset_reproduces_the_sequence(cls):
    part = cls(seed=11)
    part.reset(6)
    first = [part.new_partition(i) for i in range(5)]
    part.reset(6)
    second = [part.new_partition(i) for i in range(5)]
    for a, b in zip(first, second):
        assert np.array_equal(a, b)


def test_permutation_keeps_half_split():
    part = PermutationPartitioner(seed=2)
    part.reset(7)
    for i in range(10):
        part.new_partition(i)
        assert part.get_partition(i).sum() == 3


def test_codes_and_overwrite():
    part = RandomPartitioner(seed=0)
    part.reset(4)
    part.new_partition(0)
    part.set_partition(0, [1, 0, 0, 1])
    assert list(part.get_partition(0)) == [1, 0, 0, 1]
    assert part.get_code(0, 3) == 1
    assert part.get_code(0, 1) == 0
    assert list(part.encode(0, np.array([3, 1, 0]))) == [1, 0, 1]

    part.new_partition(0)
    assert len(part) == 1
    with pytest.raises(InvalidIndexError):
        part.new_partition(2)
    with pytest.raises(InvalidIndexError):
        part.get_partition(1)

    part.truncate(0)
    assert len(part) == 0


def test_make_partitioner():
    assert isinstance(make_partitioner("even_split", seed=3), EvenSplitPartitioner)
    proto = RandomPartitioner(seed=9)
    made = make_partitioner(proto)
    assert made is not proto and made.seed == 9
    assert isinstance(make_partitioner(PermutationPartitioner), PermutationPartitioner)
    with pytest.raises(ConfigurationError):
        make_partitioner(None)
    with pytest.raises(ConfigurationError):
        make_partitioner("nope")
    with pytest.raises(ConfigurationError):
        RandomPartitioner().reset(1)
