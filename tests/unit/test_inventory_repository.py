import asyncio
import threading


def test_queries_run_off_the_event_loop_thread(inventory_repository, monkeypatch):
    threads = []
    original = inventory_repository._connection

    def tracking_connection():
        threads.append(threading.get_ident())
        return original()

    monkeypatch.setattr(inventory_repository, "_connection", tracking_connection)

    async def run_queries():
        loop_thread = threading.get_ident()
        await inventory_repository.total_count()
        await inventory_repository.low_stock_items()
        await inventory_repository.find_by_name_substring("gauze")
        return loop_thread

    loop_thread = asyncio.run(run_queries())

    assert len(threads) == 3
    assert loop_thread not in threads


def test_concurrent_lookups_complete(inventory_repository):
    async def run_all():
        return await asyncio.gather(
            inventory_repository.total_count(),
            inventory_repository.total_quantity(),
            inventory_repository.out_of_stock_count(),
        )

    assert asyncio.run(run_all()) == [5, 543, 1]


def test_substring_search_treats_wildcards_literally(inventory_repository):
    assert asyncio.run(inventory_repository.find_by_name_substring("%")) == []
    names = [item.name for item in asyncio.run(inventory_repository.find_by_name_substring("SYRINGE"))]
    assert names == ["Syringes 5ml"]
