"""Async loading -- one shared load for many concurrent renders.

Templates live on disk next to this file. The environment does not read
them until the first ``render_async()``; five concurrent renders then share
a single load, and every later render uses the compiled-template cache.

Run:
    python app.py
"""

import asyncio
from pathlib import Path

from blockwork import Environment, FileSystemLoader

TEMPLATES_DIR = Path(__file__).parent / "templates"

env = Environment(loader=FileSystemLoader(TEMPLATES_DIR))

state_before = env.performance_report().loader_state

REGIONS = ["North", "South", "East", "West", "Central"]


async def render_all() -> list[str]:
    """Render one report per region concurrently."""
    return await asyncio.gather(
        *(
            env.render_async(
                "report",
                title=f"{region} sales",
                rows=[
                    {"label": "Online Store", "share": 0.625},
                    {"label": "Retail", "share": 0.375},
                ],
            )
            for region in REGIONS
        )
    )


outputs = asyncio.run(render_all())
report = env.performance_report()


def main() -> None:
    for output in outputs:
        print(output)
    print(report)


if __name__ == "__main__":
    main()
