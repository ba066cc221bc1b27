"""
Prime the query cache by requesting every day in a range.

Usage:
    python warm_cache.py 2017-01-01 2017-01-31 --base http://localhost:8100 --view collected
"""
import argparse
import asyncio
from datetime import date, timedelta

import aiohttp

API_URL = "http://localhost:8100"
VIEWS = ["collected", "occurred"]
CONCURRENCY_LIMIT = 4


def iter_days(start: date, end: date):
    day = start
    while day <= end:
        yield day.strftime("%Y-%m-%d")
        day += timedelta(days=1)


def build_paths(days, views, sources=(), prefixes=()):
    """Request paths for every view and day, optionally per source and prefix"""
    paths = []
    for day in days:
        for view in views:
            paths.append(f"/{view}/{day}/events.json")
            paths += [f"/{view}/{day}/sources/{source}/events.json" for source in sources]
            paths += [f"/{view}/{day}/prefixes/{prefix}/events.json" for prefix in prefixes]
    return paths


async def fetch_path(session, base, path, sem):
    async with sem:
        try:
            async with session.get(base + path) as resp:
                await resp.read()
                print(f"[GET] {path} status={resp.status}")
                return resp.status
        except Exception as e:
            print(f"[ERROR] {path} error={e}")
            return None


async def wait_for_service(url, timeout=60):
    for _ in range(timeout):
        try:
            async with aiohttp.ClientSession() as session:
                async with session.get(url) as resp:
                    if resp.status == 200:
                        print("Query API is ready!")
                        return
        except aiohttp.ClientError:
            pass
        print("Waiting for query API to be ready...")
        await asyncio.sleep(1)
    print("Query API not ready after waiting, proceeding anyway...")


async def main(args):
    base = args.base.rstrip("/")
    await wait_for_service(f"{base}/health")

    sem = asyncio.Semaphore(args.concurrency)
    days = list(iter_days(date.fromisoformat(args.start), date.fromisoformat(args.end)))
    paths = build_paths(days, args.view or VIEWS, args.source, args.prefix)

    print(f"Requesting {len(paths)} paths for {len(days)} days...")

    async with aiohttp.ClientSession() as session:
        results = await asyncio.gather(
            *(fetch_path(session, base, path, sem) for path in paths)
        )

    ok = sum(1 for status in results if status == 200)
    print(f"Done: {ok} ok, {len(results) - ok} not ok")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Warm the Event Data query cache")
    parser.add_argument("start", help="First day, YYYY-MM-DD")
    parser.add_argument("end", help="Last day, YYYY-MM-DD")
    parser.add_argument("--base", default=API_URL)
    parser.add_argument("--view", action="append", choices=VIEWS)
    parser.add_argument("--source", action="append", default=[])
    parser.add_argument("--prefix", action="append", default=[])
    parser.add_argument("--concurrency", type=int, default=CONCURRENCY_LIMIT)
    asyncio.run(main(parser.parse_args()))
