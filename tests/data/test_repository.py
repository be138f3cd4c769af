# Copyright 2026 Firefly Software Solutions Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""Tests for ReadOnlyRepository, WriteRepository and CachedReadOnlyRepository."""

import asyncio
from dataclasses import dataclass
from datetime import datetime, timedelta

import pytest

from specquery.cache.adapters.memory import InMemoryCacheProvider
from specquery.config.properties.cache import CacheProperties
from specquery.data.adapters.memory import InMemoryDataSource
from specquery.data.ports.outbound import ReadRepositoryPort, WriteRepositoryPort
from specquery.data.repository import CachedReadOnlyRepository, ReadOnlyRepository, WriteRepository
from specquery.data.specification import Specification
from specquery.kernel.exceptions import ConflictException, ResourceNotFoundException


@dataclass
class Order:
    status: str
    total: float
    created_at: datetime
    id: int | None = None


BASE_TIME = datetime(2024, 1, 1)


def make_orders() -> list[Order]:
    statuses = ["Paid", "Open", "Paid", "Paid", "Cancelled", "Paid"]
    return [Order(status, 10.0 * (i + 1), BASE_TIME + timedelta(days=i)) for i, status in enumerate(statuses)]


@pytest.fixture
def source():
    source = InMemoryDataSource()
    source.seed(*make_orders())
    return source


@pytest.fixture
def reader(source):
    return ReadOnlyRepository(source)


@pytest.fixture
def writer(source):
    return WriteRepository(source)


class CountingReader:
    """Wraps a repository and counts list() calls."""

    def __init__(self, inner: ReadOnlyRepository) -> None:
        self.inner = inner
        self.list_calls = 0

    async def list(self, spec):
        self.list_calls += 1
        await asyncio.sleep(0)
        return await self.inner.list(spec)

    async def get_single_or_none(self, spec):
        return await self.inner.get_single_or_none(spec)

    async def get_single(self, spec):
        return await self.inner.get_single(spec)

    async def list_all(self, entity_type):
        return await self.inner.list_all(entity_type)

    async def count(self, spec):
        return await self.inner.count(spec)


def recent_paid() -> Specification[Order]:
    return (
        Specification(Order)
        .where(lambda o: o.status == "Paid")
        .order_by_descending(lambda o: o.created_at)
        .paged(0, 10)
        .cached(30)
    )


def recent_paid_renamed() -> Specification[Order]:
    return (
        Specification(Order)
        .where(lambda order: order.status == "Paid")
        .order_by_descending(lambda o: o.created_at)
        .paged(0, 10)
        .cached(30)
    )


class TestReadOnlyRepository:
    def test_conforms_to_port(self, reader):
        assert isinstance(reader, ReadRepositoryPort)

    @pytest.mark.asyncio
    async def test_list_recent_paid(self, reader):
        orders = await reader.list(recent_paid())
        assert [o.id for o in orders] == [6, 4, 3, 1]

    @pytest.mark.asyncio
    async def test_list_paged_by_primary_key(self, reader):
        orders = await reader.list(Specification(Order).paged(2, 2))
        assert [o.id for o in orders] == [3, 4]

    @pytest.mark.asyncio
    async def test_reads_are_untracked(self, reader, source):
        spec = Specification(Order).where(lambda o: o.id == 1)
        order = await reader.get_single(spec)
        order.status = "Refunded"
        assert (await source.find(Order, 1)).status == "Paid"
        assert spec.is_untracked is False

    @pytest.mark.asyncio
    async def test_get_single(self, reader):
        order = await reader.get_single(Specification.by_id(Order, 2))
        assert order.status == "Open"

    @pytest.mark.asyncio
    async def test_get_single_none_matching(self, reader):
        with pytest.raises(ResourceNotFoundException):
            await reader.get_single(Specification.by_id(Order, 99))
        assert await reader.get_single_or_none(Specification.by_id(Order, 99)) is None

    @pytest.mark.asyncio
    async def test_get_single_several_matching(self, reader):
        spec = Specification(Order).where(lambda o: o.status == "Paid")
        with pytest.raises(ConflictException):
            await reader.get_single(spec)
        with pytest.raises(ConflictException):
            await reader.get_single_or_none(spec)

    @pytest.mark.asyncio
    async def test_list_all(self, reader):
        assert len(await reader.list_all(Order)) == 6

    @pytest.mark.asyncio
    async def test_count_includes_paging(self, reader):
        paid = Specification(Order).where(lambda o: o.status == "Paid")
        assert await reader.count(paid) == 4
        assert await reader.count(paid.paged(0, 3)) == 3
        assert await reader.count(paid.paged(3, 3)) == 1

    @pytest.mark.asyncio
    async def test_by_ids(self, reader):
        orders = await reader.list(Specification.by_ids(Order, [5, 2]).order_by(lambda o: o.id))
        assert [o.status for o in orders] == ["Open", "Cancelled"]


class TestWriteRepository:
    def test_conforms_to_port(self, writer):
        assert isinstance(writer, WriteRepositoryPort)

    @pytest.mark.asyncio
    async def test_reads_are_tracked(self, writer, source):
        order = await writer.get_single(Specification.by_id(Order, 1))
        assert order is await source.find(Order, 1)

    @pytest.mark.asyncio
    async def test_create_and_save(self, writer):
        created = await writer.create(Order("Open", 5.0, BASE_TIME))
        assert created.id is None
        await writer.save()
        assert created.id == 7
        assert await writer.count(Specification(Order)) == 7

    @pytest.mark.asyncio
    async def test_create_all(self, writer):
        await writer.create_all([Order("Open", 1.0, BASE_TIME), Order("Open", 2.0, BASE_TIME)])
        await writer.save()
        assert await writer.count(Specification(Order).where(lambda o: o.status == "Open")) == 3

    @pytest.mark.asyncio
    async def test_delete_by_id(self, writer):
        await writer.delete_by_id(Order, 1)
        await writer.save()
        assert await writer.get_single_or_none(Specification.by_id(Order, 1)) is None

    @pytest.mark.asyncio
    async def test_delete_by_missing_id_is_noop(self, writer):
        await writer.delete_by_id(Order, 99)
        await writer.save()
        assert await writer.count(Specification(Order)) == 6

    @pytest.mark.asyncio
    async def test_delete_and_delete_all(self, writer):
        paid = await writer.list(Specification(Order).where(lambda o: o.status == "Paid"))
        await writer.delete(paid[0])
        await writer.delete_all(paid[1:])
        await writer.save()
        assert await writer.count(Specification(Order)) == 2


class TestCachedReadOnlyRepository:
    @pytest.fixture
    def counting(self, reader):
        return CountingReader(reader)

    @pytest.fixture
    def cache(self):
        return InMemoryCacheProvider()

    @pytest.mark.asyncio
    async def test_equal_specifications_share_one_read(self, counting, cache):
        repo = CachedReadOnlyRepository(counting, cache)
        first = await repo.list(recent_paid())
        second = await repo.list(recent_paid_renamed())
        assert first == second
        assert counting.list_calls == 1
        assert cache.get(recent_paid().cache_key) == tuple(first)

    @pytest.mark.asyncio
    async def test_caller_mutation_does_not_reach_cached_result(self, counting, cache):
        repo = CachedReadOnlyRepository(counting, cache)
        first = await repo.list(recent_paid())
        expected = list(first)
        first.clear()
        second = await repo.list(recent_paid())
        assert second == expected
        assert second is not first
        second.append("extra")
        assert await repo.list(recent_paid()) == expected
        assert counting.list_calls == 1

    @pytest.mark.asyncio
    async def test_concurrent_reads_single_flight(self, counting, cache):
        repo = CachedReadOnlyRepository(counting, cache)
        results = await asyncio.gather(*(repo.list(recent_paid()) for _ in range(5)))
        assert counting.list_calls == 1
        assert all(result == results[0] for result in results)

    @pytest.mark.asyncio
    async def test_uncached_specification_reads_through(self, counting, cache):
        repo = CachedReadOnlyRepository(counting, cache)
        spec = Specification(Order).where(lambda o: o.status == "Paid")
        await repo.list(spec)
        await repo.list(spec)
        assert counting.list_calls == 2
        assert len(cache) == 0

    @pytest.mark.asyncio
    async def test_disabled_cache_reads_through(self, counting, cache):
        repo = CachedReadOnlyRepository(counting, cache, CacheProperties(enabled=False))
        await repo.list(recent_paid())
        await repo.list(recent_paid())
        assert counting.list_calls == 2

    @pytest.mark.asyncio
    async def test_cached_for_specification_duration(self, counting):
        now = [0.0]
        cache = InMemoryCacheProvider(clock=lambda: now[0])
        repo = CachedReadOnlyRepository(counting, cache)
        await repo.list(recent_paid())
        now[0] = 29.0
        await repo.list(recent_paid())
        assert counting.list_calls == 1
        now[0] = 30.0
        await repo.list(recent_paid())
        assert counting.list_calls == 2

    @pytest.mark.asyncio
    async def test_evict(self, counting, cache):
        repo = CachedReadOnlyRepository(counting, cache)
        await repo.list(recent_paid())
        repo.evict(recent_paid())
        await repo.list(recent_paid())
        assert counting.list_calls == 2

    @pytest.mark.asyncio
    async def test_other_reads_delegate(self, counting, cache):
        repo = CachedReadOnlyRepository(counting, cache)
        spec = recent_paid()
        assert await repo.count(spec) == 4
        assert len(await repo.list_all(Order)) == 6
        assert (await repo.get_single(Specification.by_id(Order, 2))).status == "Open"
        assert await repo.get_single_or_none(Specification.by_id(Order, 42)) is None
        assert len(cache) == 0
