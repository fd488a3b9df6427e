import logging

from django.dispatch import Signal, receiver

logger = logging.getLogger(__name__)

# sent after the placing transaction commits; kwargs: order
order_placed = Signal()


@receiver(order_placed)
def log_order_placed(sender, order, **kwargs):
    logger.info(f"order placed: {order.id} user={order.user_id} total={order.total}")
