import json
import logging
import threading
from datetime import datetime, timezone
from typing import Any, Dict, Optional
import pika

logger = logging.getLogger(__name__)

EXPENSE_CREATED = "ledger.expense.created"
SPLIT_PAID = "ledger.split.paid"
GROUP_DELETED = "ledger.group.deleted"


class LedgerEventPublisher:
    """Publishes ledger events to a RabbitMQ topic exchange"""

    def __init__(self, url: str, exchange: str):
        self.url = url
        self.exchange = exchange
        self.connection: Optional[pika.BlockingConnection] = None
        self.channel = None
        # pika connections are not thread-safe and routes run in a threadpool
        self._lock = threading.RLock()

    def connect(self) -> None:
        """Establish connection to RabbitMQ and declare the exchange"""
        with self._lock:
            try:
                self.connection = pika.BlockingConnection(pika.URLParameters(self.url))
                self.channel = self.connection.channel()
                self.channel.exchange_declare(exchange=self.exchange, exchange_type="topic", durable=True)
                logger.info("Ledger event publisher connected successfully")
            except Exception as e:
                logger.error(f"Failed to connect ledger event publisher: {e}")
                raise

    def disconnect(self) -> None:
        """Close RabbitMQ connection"""
        with self._lock:
            try:
                if self.channel and not self.channel.is_closed:
                    self.channel.close()
                if self.connection and not self.connection.is_closed:
                    self.connection.close()
            finally:
                self.channel = None
                self.connection = None
        logger.info("Ledger event publisher disconnected")

    def publish(self, routing_key: str, payload: Dict[str, Any]) -> bool:
        """
        Publish a ledger event

        Args:
            routing_key: Event name, e.g. ledger.split.paid
            payload: JSON-serializable event data; Decimals and datetimes are
                sent as strings

        Returns:
            bool: True if message published successfully, False otherwise
        """
        try:
            message_data = {
                "event": routing_key,
                "data": payload,
                "timestamp": datetime.now(timezone.utc).isoformat()
            }
            body = json.dumps(message_data, default=str)

            with self._lock:
                if not self.connection or self.connection.is_closed:
                    self.connect()

                self.channel.basic_publish(
                    exchange=self.exchange,
                    routing_key=routing_key,
                    body=body,
                    properties=pika.BasicProperties(
                        delivery_mode=2,  # Make message persistent
                        content_type='application/json'
                    )
                )

            logger.info(f"Published ledger event {routing_key}")
            return True

        except Exception as e:
            logger.error(f"Failed to publish ledger event {routing_key}: {e}")
            return False


def expense_event_payload(expense) -> Dict[str, Any]:
    return {
        "expense_id": expense.id,
        "group_id": expense.group_id,
        "payer_id": expense.payer_id,
        "amount": expense.amount,
        "is_paid": expense.is_paid,
        "splits": [
            {"member_id": split.member_id, "share_amount": split.share_amount, "is_paid": split.is_paid}
            for split in expense.splits
        ],
    }
