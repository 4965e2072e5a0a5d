"""Feed check: page through a live discovery feed and verify its guarantees.

Checks, for one bearer token:
  * the requester never appears in their own feed (``--user-id``);
  * no candidate id appears on two pages;
  * two identical requests return the same order;
  * every ``distance_in_km`` is within ``--max-distance`` (miles).

Usage: python -m scripts.feed_check --token TOKEN [--user-id UUID]
       [--max-distance 50] [--sort recent] [--page-size 20]
       [--base-url http://localhost:8000]
"""
import argparse
import asyncio
import statistics
import sys
import time
from typing import Any

import httpx

from matchfeed.services.distance import miles_to_km

DEFAULT_BASE_URL = "http://localhost:8000"
DEFAULT_PAGE_SIZE = 20
MAX_PAGES = 50


async def fetch_page(
    client: httpx.AsyncClient,
    base_url: str,
    params: dict[str, Any],
) -> dict[str, Any]:
    resp = await client.get(f"{base_url}/api/v1/discover/top-matches", params=params)
    resp.raise_for_status()
    return resp.json()


def check_pages(
    pages: list[list[dict[str, Any]]],
    user_id: str | None = None,
    max_distance_miles: float | None = None,
) -> list[str]:
    """Return a list of human-readable violations across fetched pages."""
    errors: list[str] = []
    seen: dict[str, int] = {}
    max_km = miles_to_km(max_distance_miles) if max_distance_miles else None

    for page_no, page in enumerate(pages):
        for card in page:
            cid = str(card.get("id"))
            if user_id and cid == user_id:
                errors.append(f"page {page_no}: requester {cid} is in their own feed")
            if cid in seen:
                errors.append(f"page {page_no}: {cid} already returned on page {seen[cid]}")
            else:
                seen[cid] = page_no
            distance = card.get("distance_in_km")
            if max_km is not None and distance is not None and distance > max_km:
                errors.append(
                    f"page {page_no}: {cid} at {distance} km exceeds {max_km:.1f} km"
                )
    return errors


def check_stable(first: list[dict[str, Any]], second: list[dict[str, Any]]) -> list[str]:
    a = [str(c.get("id")) for c in first]
    b = [str(c.get("id")) for c in second]
    if a != b:
        return ["identical requests returned different orders"]
    return []


async def run_feed_check(args: argparse.Namespace) -> dict[str, Any]:
    print(f"\n{'='*60}")
    print("MatchFeed feed check")
    print(f"Target: {args.base_url}")
    print(f"{'='*60}\n")

    params: dict[str, Any] = {"limit": args.page_size, "sort": args.sort}
    if args.max_distance:
        params["max_distance"] = args.max_distance

    headers = {"Authorization": f"Bearer {args.token}"}
    pages: list[list[dict[str, Any]]] = []
    timings: list[float] = []
    total = 0

    async with httpx.AsyncClient(timeout=30.0, headers=headers) as client:
        print("[1/2] Paging through the feed...")
        offset = 0
        for _ in range(MAX_PAGES):
            t0 = time.monotonic()
            body = await fetch_page(client, args.base_url, {**params, "offset": offset})
            timings.append(time.monotonic() - t0)
            page = body.get("data", [])
            total = body.get("total", total)
            pages.append(page)
            if body.get("empty_reason"):
                print(f"  feed is empty: {body['empty_reason']}")
            if not body.get("has_more") or not page:
                break
            offset += len(page)
        print(f"  -> {sum(len(p) for p in pages)} candidates over {len(pages)} pages (total={total})\n")

        print("[2/2] Repeating the first page...")
        repeat = await fetch_page(client, args.base_url, {**params, "offset": 0})

    errors = check_pages(pages, args.user_id, args.max_distance)
    errors += check_stable(pages[0] if pages else [], repeat.get("data", []))

    print(f"{'='*60}")
    print("FEED CHECK RESULTS")
    print(f"{'='*60}")
    if timings:
        print("page latency:")
        print(f"  mean:   {statistics.mean(timings):.3f}s")
        print(f"  median: {statistics.median(timings):.3f}s")
        print(f"  max:    {max(timings):.3f}s")
    if errors:
        print(f"\nViolations ({len(errors)}):")
        for e in errors[:20]:
            print(f"  - {e}")
    print(f"\n{'='*60}\n")
    return {"pages": len(pages), "total": total, "errors": errors}


def main():
    parser = argparse.ArgumentParser(description="MatchFeed discovery feed check")
    parser.add_argument("--token", required=True, help="Bearer token of the requester")
    parser.add_argument("--user-id", type=str, default=None, help="Requester's user id")
    parser.add_argument("--max-distance", type=float, default=None, help="Distance filter in miles")
    parser.add_argument("--sort", type=str, default="recent", help="recent | distance | liked_me")
    parser.add_argument("--page-size", type=int, default=DEFAULT_PAGE_SIZE)
    parser.add_argument("--base-url", type=str, default=DEFAULT_BASE_URL, help="API base URL")
    args = parser.parse_args()

    results = asyncio.run(run_feed_check(args))

    if results["errors"]:
        print(f"FAIL: {len(results['errors'])} violation(s)")
        sys.exit(1)
    print("PASS")


if __name__ == "__main__":
    main()
