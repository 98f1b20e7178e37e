#!/usr/bin/env python
"""Sync one sprint, classify it and print the results"""
import asyncio
import sys

from work_item_intel.config import Settings
from work_item_intel.server import build_agent


async def main():
    settings = Settings.from_env()
    sprint_name = sys.argv[1] if len(sys.argv) > 1 else None

    print(f"🔗 Organization: {settings.organization_url}")
    print(f"📁 Project: {settings.project}\n")

    agent = await build_agent(settings)
    report = await agent.sync(sprint_name)

    print("=" * 70)
    print(f"📊 SPRINT: {report.sprint_name}")
    print("=" * 70)

    classifications = {
        c.work_item_id: c for c in agent.store.get_classifications(report.sprint_name)
    }
    for idx, item in enumerate(agent.store.get_work_items(report.sprint_name), 1):
        result = classifications[item.id]
        print(f"\n{idx}. [{item.type.value}] {item.title}")
        print(f"   ID: {item.id}")
        print(f"   Suggested Priority: {result.suggested_priority.name.title()}")
        print(f"   Tags: {', '.join(result.suggested_tags) or 'None'}")
        print(f"   Confidence: {result.confidence:.0%}")
        print(f"   Reasoning: {result.reasoning}")

    if report.stats:
        print(f"\n📈 Priority Breakdown: {report.stats.priority_breakdown}")


if __name__ == "__main__":
    asyncio.run(main())
