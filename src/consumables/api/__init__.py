from consumables.api.routes import alert_router, consumable_router, inventory_task_router, operation_router

__all__ = ["consumable_router", "operation_router", "alert_router", "inventory_task_router"]
