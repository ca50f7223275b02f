from dependency_injector import containers, providers

from order_monitor.application.container import ApplicationContainer
from order_monitor.presentation.event_consumer_worker import EventConsumerWorker
from order_monitor.presentation.simulator_worker import SimulatorWorker


class PresentationContainer(containers.DeclarativeContainer):
    config = providers.Configuration()
    application = providers.Container[ApplicationContainer](
        ApplicationContainer, config=config
    )

    simulator_worker = providers.Singleton[SimulatorWorker](
        SimulatorWorker,
        use_case=application.simulate_status_tick_use_case,
        broadcaster=application.infrastructure_container.broadcaster,
        interval_seconds=config.simulator.interval_seconds,
    )
    event_consumer_worker = providers.Singleton[EventConsumerWorker](
        EventConsumerWorker,
        apply_order_update_use_case=application.apply_order_update_use_case,
        record_order_message_use_case=application.record_order_message_use_case,
        broadcaster=application.infrastructure_container.broadcaster,
        bootstrap_servers=config.kafka.bootstrap_servers,
        order_topic=config.kafka.order_topic,
        status_topic=config.kafka.status_topic,
        group_id=config.kafka.group_id,
    )

    # Live source of order updates: the local simulator or a Kafka feed.
    feed_worker = providers.Selector(
        config.feed.mode,
        mock=simulator_worker,
        kafka=event_consumer_worker,
    )
