import asyncio
import json
import logging
from contextlib import suppress

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
import redis.asyncio as redis

from ..store import redis_client


router = APIRouter()
logger = logging.getLogger(__name__)


def stream_channel(channel: int) -> str:
    return f"match-{channel}:updates"


async def broadcast(channel: int, message: dict) -> None:
    """Publish a derived view to every display subscribed to a channel."""
    try:
        await redis_client.publish(stream_channel(channel), json.dumps(message))
    except redis.ConnectionError:
        logger.warning("Could not broadcast update for channel %s", channel)


@router.websocket("/channels/{channel}/stream")
async def channel_stream(ws: WebSocket, channel: int) -> None:
    """Stream scoreboard updates via a Redis pub/sub channel."""
    await ws.accept()
    try:
        async with redis_client.pubsub() as pubsub:
            await pubsub.subscribe(stream_channel(channel))

            async def sender() -> None:
                try:
                    async for msg in pubsub.listen():
                        if msg.get("type") == "message":
                            await ws.send_json(json.loads(msg["data"]))
                except redis.ConnectionError:
                    await ws.close()

            send_task = asyncio.create_task(sender())
            try:
                while True:
                    await ws.receive_text()
            except WebSocketDisconnect:
                pass
            finally:
                send_task.cancel()
                with suppress(asyncio.CancelledError):
                    await send_task
                await pubsub.unsubscribe(stream_channel(channel))
    except redis.ConnectionError:
        await ws.close()
