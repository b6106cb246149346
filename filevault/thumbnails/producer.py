import json
import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor

from pika import BasicProperties, BlockingConnection, URLParameters, exceptions
from pika.adapters.blocking_connection import BlockingChannel

from filevault.models import ThumbnailJob

logger = logging.getLogger("filevault.thumbnails")


def declare_queue(channel: BlockingChannel, name: str) -> None:
    """Declare the durable exchange and queue for thumbnail jobs, and bind them (idempotent)"""
    channel.exchange_declare(exchange=name, exchange_type="topic", durable=True)
    channel.queue_declare(queue=name, durable=True)
    channel.queue_bind(exchange=name, queue=name, routing_key=name)


class ThumbnailProducer:
    """Publishes thumbnail jobs as persistent messages on the durable job queue"""

    def __init__(self, rabbitmq_url: str, queue_name: str, max_retries: int = 5) -> None:
        self._rabbitmq_url = rabbitmq_url
        self._queue_name = queue_name
        self._heartbeat_interval = 60
        self._reconnect_delay = 5  # seconds
        self._max_retries = max_retries
        self._connection = None
        self._channel = None
        self._lock = threading.Lock()
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="thumbnail-producer")

    def connect(self) -> None:
        try:
            logger.info("Connecting to RabbitMQ...")
            parameters = URLParameters(self._rabbitmq_url)
            parameters.heartbeat = self._heartbeat_interval

            self._connection = BlockingConnection(parameters)
            self._channel = self._connection.channel()
            declare_queue(self._channel, self._queue_name)
            logger.info("Successfully connected to RabbitMQ Producer.")
        except exceptions.AMQPConnectionError:
            self._connection = None
            self._channel = None
            raise

    def publish(self, message: dict) -> None:
        with self._lock:
            properties = BasicProperties(
                delivery_mode=2,  # persistent
                content_type="application/json",
            )
            body = json.dumps(message)

            for attempt in range(self._max_retries):
                try:
                    if not self._connection or not self._connection.is_open:
                        self.connect()
                    if self._channel and self._channel.is_open:
                        self._channel.basic_publish(
                            exchange=self._queue_name,
                            routing_key=self._queue_name,
                            body=body,
                            properties=properties,
                        )
                        logger.info(f"Message published to {self._queue_name}: {message}")
                        return
                    logger.warning("Channel is not open, reconnecting...")
                    self._connection = None
                except (exceptions.AMQPConnectionError, exceptions.AMQPChannelError) as e:
                    logger.error(f"Connection error: {e}, retrying in {self._reconnect_delay} seconds...")
                    self._connection = None
                    time.sleep(self._reconnect_delay)
            raise ConnectionError(f"Could not publish to {self._queue_name} after {self._max_retries} attempts")

    def enqueue(self, user_id: str, file_id: str) -> bool:
        """Put a thumbnail job on the queue. Failures are logged, not raised: thumbnails are best effort."""
        job = ThumbnailJob(user_id=user_id, file_id=file_id)
        try:
            self.publish(job.model_dump(by_alias=True))
        except Exception:
            logger.exception(f"Could not enqueue thumbnail job for file {file_id}")
            return False
        return True

    def schedule(self, user_id: str, file_id: str) -> None:
        """
        Enqueue on the producer's own background thread without waiting for it (fire and forget).
        Jobs are published one at a time, on a thread that is not shared with request handling.
        """
        self._executor.submit(self.enqueue, user_id, file_id)

    def close(self) -> None:
        """Publish the jobs that are still scheduled, then close the connection"""
        self._executor.shutdown(wait=True)
        with self._lock:
            if self._connection and self._connection.is_open:
                self._connection.close()
                logger.info("RabbitMQ Producer connection closed.")
            self._connection = None
            self._channel = None
