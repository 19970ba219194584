from storefront.models.order import OrderStatus

ALLOWED_TRANSITIONS = {
    OrderStatus.PENDING: [OrderStatus.COMPLETED],
    OrderStatus.COMPLETED: [OrderStatus.REFUNDED],
    OrderStatus.REFUNDED: [],
}
