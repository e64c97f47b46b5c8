import pytest

from spanpool.object_pool import ObjectPool


class Node:
    def __init__(self):
        self.val = 0
        self.left = None
        self.right = None


def test_new_returns_instances_of_class():
    pool = ObjectPool(Node)
    a = pool.new()
    b = pool.new()
    assert isinstance(a, Node) and isinstance(b, Node)
    assert a is not b
    assert a.val == 0


def test_deleted_object_is_reused_and_reset():
    pool = ObjectPool(Node)
    a = pool.new()
    a.val = 42
    a.left = a
    pool.delete(a)
    again = pool.new()
    assert again is a
    assert again.val == 0
    assert again.left is None


def test_reuse_is_lifo():
    pool = ObjectPool(Node)
    a, b = pool.new(), pool.new()
    pool.delete(a)
    pool.delete(b)
    assert pool.new() is b
    assert pool.new() is a
    assert pool.new() not in (a, b)


def test_double_delete_raises():
    pool = ObjectPool(Node)
    a = pool.new()
    pool.delete(a)
    with pytest.raises(ValueError):
        pool.delete(a)


def test_delete_wrong_type_raises():
    pool = ObjectPool(Node)
    with pytest.raises(TypeError):
        pool.delete(object())


def test_many_rounds_keep_objects_distinct():
    pool = ObjectPool(Node)
    for _ in range(5):
        objs = [pool.new() for _ in range(100)]
        assert len({id(o) for o in objs}) == 100
        for o in objs:
            pool.delete(o)