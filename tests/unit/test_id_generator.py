"""Tests for gb_common.id_generator and gb_common.datetime_utils."""

from datetime import UTC, datetime

import pytest

from src.gb_common.datetime_utils import iso_or_none, utc_now
from src.gb_common.id_generator import SnowflakeIdGenerator, generate_id


class TestSnowflakeIdGenerator:
    def test_returns_str(self) -> None:
        assert isinstance(SnowflakeIdGenerator(node_id=1).next_id(), str)

    def test_unique_ids(self) -> None:
        gen = SnowflakeIdGenerator(node_id=1)
        ids = {gen.next_id() for _ in range(1000)}
        assert len(ids) == 1000

    def test_monotonically_increasing(self) -> None:
        gen = SnowflakeIdGenerator(node_id=1)
        prev = int(gen.next_id())
        for _ in range(100):
            current = int(gen.next_id())
            assert current > prev
            prev = current

    def test_node_ids_do_not_collide(self) -> None:
        a = {SnowflakeIdGenerator(node_id=1).next_id() for _ in range(50)}
        b = {SnowflakeIdGenerator(node_id=2).next_id() for _ in range(50)}
        assert a.isdisjoint(b)

    def test_node_id_range(self) -> None:
        with pytest.raises(ValueError):
            SnowflakeIdGenerator(node_id=1024)


def test_generate_id_prefix() -> None:
    assert generate_id("BET-").startswith("BET-")


class TestDatetimeUtils:
    def test_utc_now_is_aware(self) -> None:
        assert utc_now().tzinfo is not None

    def test_iso_or_none(self) -> None:
        assert iso_or_none(None) is None
        assert iso_or_none(datetime(2026, 1, 2, tzinfo=UTC)) == "2026-01-02T00:00:00+00:00"
