from dependency_injector import containers, providers

from order_monitor.application.create_order import CreateOrderUseCase
from order_monitor.application.record_feed_events import (
    ApplyOrderUpdateUseCase,
    RecordOrderMessageUseCase,
)
from order_monitor.application.seed_demo_orders import SeedDemoOrdersUseCase
from order_monitor.application.simulate_status import (
    SimulateStatusTickUseCase,
    TriggerOrderUpdateUseCase,
)
from order_monitor.application.update_order_status import UpdateOrderStatusUseCase
from order_monitor.infrastructure.container import InfrastructureContainer


class ApplicationContainer(containers.DeclarativeContainer):
    config = providers.Configuration()
    infrastructure_container = providers.Container[InfrastructureContainer](
        InfrastructureContainer,
        config=config.infrastructure,
    )

    create_order_use_case = providers.Singleton[CreateOrderUseCase](
        CreateOrderUseCase, unit_of_work=infrastructure_container.unit_of_work
    )
    seed_demo_orders_use_case = providers.Singleton[SeedDemoOrdersUseCase](
        SeedDemoOrdersUseCase,
        unit_of_work=infrastructure_container.unit_of_work,
        create_order_use_case=create_order_use_case,
    )
    update_order_status_use_case = providers.Singleton[UpdateOrderStatusUseCase](
        UpdateOrderStatusUseCase,
        unit_of_work=infrastructure_container.unit_of_work,
        broadcaster=infrastructure_container.broadcaster,
    )
    simulate_status_tick_use_case = providers.Singleton[SimulateStatusTickUseCase](
        SimulateStatusTickUseCase,
        unit_of_work=infrastructure_container.unit_of_work,
        update_order_status_use_case=update_order_status_use_case,
        order_ids=config.simulator.order_ids,
    )
    trigger_order_update_use_case = providers.Singleton[TriggerOrderUpdateUseCase](
        TriggerOrderUpdateUseCase,
        update_order_status_use_case=update_order_status_use_case,
    )
    apply_order_update_use_case = providers.Singleton[ApplyOrderUpdateUseCase](
        ApplyOrderUpdateUseCase,
        update_order_status_use_case=update_order_status_use_case,
    )
    record_order_message_use_case = providers.Singleton[RecordOrderMessageUseCase](
        RecordOrderMessageUseCase,
        unit_of_work=infrastructure_container.unit_of_work,
        broadcaster=infrastructure_container.broadcaster,
    )
