import json
import logging
import time
from typing import Any, Callable

from pika import BlockingConnection, URLParameters, exceptions

from filevault.errors import JobFailure
from filevault.thumbnails.producer import declare_queue

logger = logging.getLogger("filevault.thumbnails")

JobHandler = Callable[[dict], Any]


class ThumbnailConsumer:
    """
    Consumes thumbnail jobs one at a time, with manual acknowledgements.

    A job is acked once the handler returns. If the handler raises (a JobFailure, or anything
    unexpected) the failure is logged and the message is rejected without requeueing, so a broken
    job never blocks the queue or stops the consumer.
    """

    def __init__(self, rabbitmq_url: str, queue_name: str, handler: JobHandler) -> None:
        self._rabbitmq_url = rabbitmq_url
        self._queue_name = queue_name
        self._handler = handler
        self._heartbeat_interval = 300
        self._reconnect_delay = 5  # seconds
        self._connection = None
        self._channel = None
        self._is_running = False

    def connect(self) -> bool:
        try:
            logger.info("Connecting to RabbitMQ Consumer...")

            parameters = URLParameters(self._rabbitmq_url)
            parameters.heartbeat = self._heartbeat_interval
            parameters.blocked_connection_timeout = 600

            self._connection = BlockingConnection(parameters)
            self._channel = self._connection.channel()
            declare_queue(self._channel, self._queue_name)
            self._channel.basic_qos(prefetch_count=1)
            logger.info("Successfully connected to RabbitMQ Consumer.")
            return True

        except exceptions.AMQPConnectionError as e:
            logger.error(f"Failed to connect to RabbitMQ Consumer: {e}")
            self._connection = None
            self._channel = None
            return False

    def consume(self) -> None:
        self._is_running = True
        logger.info(f"Consuming thumbnail jobs from queue: {self._queue_name}. Press CTRL+C to exit.")
        try:
            while self._is_running:
                if not self.connect():
                    time.sleep(self._reconnect_delay)
                    continue
                self._channel.basic_consume(
                    queue=self._queue_name,
                    on_message_callback=self._on_message_received,
                    auto_ack=False,
                )
                try:
                    self._channel.start_consuming()
                except (exceptions.AMQPConnectionError, exceptions.AMQPChannelError) as e:
                    logger.error(f"Lost connection to RabbitMQ: {e!r}, reconnecting in {self._reconnect_delay} seconds")
                    self.close()
                    time.sleep(self._reconnect_delay)
                else:
                    # start_consuming only returns normally after stop()
                    self._is_running = False
        except KeyboardInterrupt:
            logger.info("Consumer stopped by user.")
        finally:
            self.close()

    def stop(self) -> None:
        """Stop consuming after the current job. Safe to call from another thread."""
        self._is_running = False
        if self._connection and self._connection.is_open and self._channel:
            self._connection.add_callback_threadsafe(self._channel.stop_consuming)

    def _on_message_received(self, channel, method, properties, body: bytes) -> None:
        try:
            job = json.loads(body.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.error(f"Invalid thumbnail job message: {e}")
            channel.basic_nack(delivery_tag=method.delivery_tag, requeue=False)
            return
        if not isinstance(job, dict):
            logger.error(f"Invalid thumbnail job message: {job!r}")
            channel.basic_nack(delivery_tag=method.delivery_tag, requeue=False)
            return

        try:
            self._handler(job)
        except JobFailure as e:
            logger.error(f"Thumbnail job {job} failed: {e.reason}")
            channel.basic_nack(delivery_tag=method.delivery_tag, requeue=False)
        except Exception:
            logger.exception(f"Error processing thumbnail job {job}")
            channel.basic_nack(delivery_tag=method.delivery_tag, requeue=False)
        else:
            channel.basic_ack(delivery_tag=method.delivery_tag)
            logger.info(f"Thumbnail job acknowledged: {job}")

    def close(self) -> None:
        if self._connection and self._connection.is_open:
            self._connection.close()
            logger.info("RabbitMQ Consumer connection closed.")
