#!/usr/bin/env python3
"""Smoke test against a running repoflow server."""

import argparse
import asyncio
import json
import time

import httpx


async def smoke(base_url: str, repo: str) -> None:
    """Hit every endpoint and show what comes back."""
    async with httpx.AsyncClient(base_url=base_url, timeout=60.0) as client:
        print(f"Testing repoflow API at {base_url}...\n")

        print("1. /api/health")
        try:
            response = await client.get("/api/health")
            print(f"   Status: {response.status_code}")
            print(f"   Response: {json.dumps(response.json(), indent=2)}\n")
        except httpx.HTTPError as e:
            print(f"   Error: {e}\n")

        print("2. /api/repos/popular")
        try:
            response = await client.get("/api/repos/popular")
            print(f"   Status: {response.status_code}")
            for r in response.json():
                print(f"   - {r['owner']}/{r['repo']}")
            print()
        except httpx.HTTPError as e:
            print(f"   Error: {e}\n")

        # Second request should be served from cache.
        print(f"3. /api/repos/{repo}/metrics (cold, then warm)")
        for attempt in ("cold", "warm"):
            try:
                started = time.perf_counter()
                response = await client.get(f"/api/repos/{repo}/metrics")
                elapsed_ms = (time.perf_counter() - started) * 1000
                print(f"   [{attempt}] Status: {response.status_code} in {elapsed_ms:.0f}ms")
                if response.status_code == 200:
                    data = response.json()
                    summary = data["summary"]
                    print(f"   Points: {len(data['time_series'])}")
                    print(f"   Opened: {summary['current_opened']}, "
                          f"merged: {summary['current_merged']}, "
                          f"merge rate: {summary['merge_rate']}%")
                else:
                    print(f"   Detail: {response.json().get('detail')}")
            except httpx.HTTPError as e:
                print(f"   Error: {e}")
        print()

        print("4. /api/cache/stats")
        try:
            response = await client.get("/api/cache/stats")
            print(f"   Status: {response.status_code}")
            print(f"   Response: {json.dumps(response.json(), indent=2)}\n")
        except httpx.HTTPError as e:
            print(f"   Error: {e}\n")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="repoflow API smoke test")
    parser.add_argument("--base-url", default="http://localhost:3000")
    parser.add_argument("--repo", default="facebook/react", help="owner/repo to query")
    args = parser.parse_args()
    asyncio.run(smoke(args.base_url, args.repo))
