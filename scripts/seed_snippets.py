import asyncio
import os
import sys

# Ensure src is in pythonpath
sys.path.append(os.path.join(os.path.dirname(__file__), "..", "src"))

from dotenv import load_dotenv
load_dotenv()

from snippet_hub.db import AsyncSessionLocal, Base, async_engine
from snippet_hub.realtime.live_query import LiveQueryHub
from snippet_hub.snippets.models import SnippetDraft
from snippet_hub.snippets.repository import SnippetRepository

SEED_USER = "seed-user"
SEED_AUTHOR = "Snippet Hub"

SAMPLES = [
    {
        "title": "Debounce a function",
        "description": "Delay calls until input settles.",
        "code": "function debounce(fn, ms) {\n  let t;\n  return (...args) => {\n    clearTimeout(t);\n    t = setTimeout(() => fn(...args), ms);\n  };\n}",
        "language": "JavaScript",
        "framework": None,
        "tags": ["utility", "timing"],
    },
    {
        "title": "Read a JSON file",
        "description": "",
        "code": "import json\n\nwith open(\"data.json\") as fh:\n    data = json.load(fh)",
        "language": "Python",
        "framework": None,
        "tags": ["io", "json"],
    },
    {
        "title": "Health check route",
        "description": "Minimal liveness endpoint.",
        "code": "@app.get(\"/health\")\ndef health():\n    return {\"status\": \"ok\"}",
        "language": "Python",
        "framework": "FastAPI",
        "tags": ["web", "utility"],
    },
    {
        "title": "useToggle hook",
        "description": "Boolean state with a toggle callback.",
        "code": "export function useToggle(initial = false) {\n  const [on, setOn] = useState(initial);\n  return [on, () => setOn(v => !v)];\n}",
        "language": "TypeScript",
        "framework": "React",
        "tags": ["hooks"],
    },
    {
        "title": "Reverse a slice",
        "description": "",
        "code": "for i, j := 0, len(s)-1; i < j; i, j = i+1, j-1 {\n\ts[i], s[j] = s[j], s[i]\n}",
        "language": "Go",
        "framework": None,
        "tags": ["utility"],
    },
]


async def main():
    print("Ensuring schema...")
    async with async_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    repo = SnippetRepository(AsyncSessionLocal, LiveQueryHub())

    for i, sample in enumerate(SAMPLES):
        draft = SnippetDraft(author=SEED_AUTHOR, user_id=SEED_USER, **sample)
        snippet_id = await repo.create(draft)
        print(f"Created ({i+1}/{len(SAMPLES)}): {sample['title']} -> {snippet_id}")

    await async_engine.dispose()
    print("Done.")


if __name__ == "__main__":
    asyncio.run(main())
