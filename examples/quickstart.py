#!/usr/bin/env python3
"""
Newsdesk Quickstart — the article lifecycle in one script.

Registers an author → creates an article → finds it by search, title
and author → updates it → deletes it.
Run with: python examples/quickstart.py

Backend must be running: http://localhost:8000
"""

from _common import create_client


def main():
    client, username = create_client("author")

    print("\n1. Creating article...")
    resp = client.post("/articles", json={
        "title": "Technologie im Alltag",
        "author": username,
        "journal_name": "Science Weekly",
        "category": ["tech", "society"],
        "description": "How everyday tools shape the way we live.",
    })
    assert resp.status_code == 201, f"Failed: {resp.text}"
    article = resp.json()["article"]
    print(f"   Article: {article['title']} ({article['id'][:8]}...)")

    print("\n2. Searching for 'te'...")
    resp = client.get("/articles/search", params={"q": "te"})
    assert resp.status_code == 200, f"Failed: {resp.text}"
    print(f"   {resp.json()['message']}")

    print("\n3. Looking up by title and author...")
    resp = client.get("/articles/title/alltag")
    print(f"   By title:  {len(resp.json())} match(es)")
    resp = client.get(f"/articles/author/{username}")
    print(f"   By author: {len(resp.json())} match(es)")

    print("\n4. Updating the article...")
    resp = client.put(f"/articles/id/{article['id']}", json={"category": ["tech"]})
    assert resp.status_code == 200, f"Failed: {resp.text}"
    print(f"   Categories now: {resp.json()['article']['category']}")

    print("\n5. Deleting the article...")
    resp = client.delete(f"/articles/id/{article['id']}")
    assert resp.status_code == 200, f"Failed: {resp.text}"
    resp = client.get(f"/articles/id/{article['id']}")
    print(f"   Lookup after delete: {resp.status_code}")

    print("\nDone. Run examples/live_feed.py in another terminal to watch these events.")


if __name__ == "__main__":
    main()
