"""EventScheduler demo: reminders that survive a restart.

Run twice: the first run schedules a few events and saves them before they
fire; the second run restores and resumes them.
"""
import asyncio

from loguru import logger

from eventscheduler import EventScheduler, EventStore, settings


class ReminderHandler:
    async def execute(self, scheduler, params):
        logger.info(f"Reminder: {params.get('message')}")


class HeartbeatHandler:
    async def execute(self, scheduler, params):
        params["beats"] = params.get("beats", 0) + 1
        logger.info(f"Heartbeat ({params['beats']} in this run copy)")


async def main():
    scheduler = EventScheduler()
    scheduler.register_callback("reminder", ReminderHandler())
    scheduler.register_callback("heartbeat", HeartbeatHandler())

    store = EventStore(settings.snapshot_path)
    restored = store.restore(scheduler)

    if not restored:
        scheduler.add_event("reminder", {"message": "stand up"}, 3000, event_id="stand-up")
        scheduler.add_event("reminder", {"message": "drink water"}, 8000)
        scheduler.add_event("heartbeat", {}, 1000, auto_repeat=True, event_id="heartbeat")

    await scheduler.resume_all()
    await asyncio.sleep(5)

    await scheduler.shutdown()
    store.save(scheduler)
    logger.info(f"Saved {len(scheduler.get_all_events())} pending events to {store.path}")


if __name__ == "__main__":
    asyncio.run(main())
