import asyncio
import logging

import uvicorn

from order_monitor.presentation.container import PresentationContainer
from order_monitor.presentation.server import build_api

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


async def main():
    presentation_container = PresentationContainer()
    presentation_container.config.from_yaml("order_monitor/config.yaml", required=True)

    app = build_api(presentation_container.application)

    seed_demo_orders = presentation_container.application.seed_demo_orders_use_case()
    await seed_demo_orders()

    feed_worker = presentation_container.feed_worker()
    config = presentation_container.config

    api_task = asyncio.create_task(
        uvicorn.Server(
            uvicorn.Config(
                app,
                host=config.server.host(),
                port=int(config.server.port()),
                log_level="info",
            )
        ).serve()
    )

    feed_task = asyncio.create_task(feed_worker.run())

    logger.info(f"Starting Order Monitor with {config.feed.mode()} feed...")
    await asyncio.gather(api_task, feed_task)


if __name__ == "__main__":
    asyncio.run(main())
