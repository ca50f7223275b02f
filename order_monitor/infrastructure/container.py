from dependency_injector import containers, providers

from order_monitor.infrastructure.broadcaster import Broadcaster
from order_monitor.infrastructure.database import InMemoryDatabase
from order_monitor.infrastructure.unit_of_work import UnitOfWork


class InfrastructureContainer(containers.DeclarativeContainer):
    config = providers.Configuration()
    database = providers.Singleton[InMemoryDatabase](InMemoryDatabase)
    unit_of_work = providers.Singleton[UnitOfWork](UnitOfWork, database=database)
    broadcaster = providers.Singleton[Broadcaster](
        Broadcaster, max_pending=config.broadcaster.max_pending
    )
