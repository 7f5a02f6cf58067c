"""Normalize stored task flags and employee counters.

Resolves tasks with several (or no) lifecycle flags set, fails tasks whose
deadline passed while nobody swept, and rewrites every employee's counters
from the task flags.

Usage:
    python scripts/fix_task_states.py
"""
import sys
import os

# Add the project root to the Python path
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
sys.path.insert(0, project_root)

import asyncio
from taskdesk.core.database import session_manager
from taskdesk.services.TaskLifecycleService import TaskLifecycleService


async def fix_task_states():
    """Run the repair pass over every employee."""
    await session_manager.init()
    try:
        print("🔧 Starting task state cleanup...")
        async with session_manager.get_session() as db:
            result = await TaskLifecycleService(db).repair_task_states()

        print("\n🎉 Task state cleanup completed!")
        print("📈 Summary:")
        print(f"   - Employees processed: {result.employees_processed}")
        print(f"   - Employees updated: {result.employees_updated}")
        print(f"   - Tasks fixed: {result.tasks_fixed}")
    finally:
        await session_manager.close()
        print("Database connection closed")


if __name__ == "__main__":
    asyncio.run(fix_task_states())
