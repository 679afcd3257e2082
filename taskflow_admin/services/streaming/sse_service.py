"""Server-Sent Events (SSE) service for streaming collection exports."""
import asyncio
import json
import logging
from typing import AsyncGenerator, Any, Dict, Optional, AsyncIterable

from taskflow_admin.services.mongodb.query_service import QueryPlan, parse_query_object_ids, serialize_mongo_doc
from taskflow_admin.services.mongodb.tenant_namespace import PhysicalCollectionName
from taskflow_admin.utils.bson_helpers import BSONEncoder

logger = logging.getLogger(__name__)

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",  # Disable buffering in Nginx
}


def format_sse_event(
    data: Any,
    event: Optional[str] = None,
    id: Optional[str] = None,
    retry: Optional[int] = None
) -> str:
    """
    Format a Server-Sent Event message.

    Args:
        data: The data to send
        event: Optional event type
        id: Optional event ID
        retry: Optional retry interval in milliseconds

    Returns:
        Formatted SSE message
    """
    message = []

    if id is not None:
        message.append(f"id: {id}")

    if event is not None:
        message.append(f"event: {event}")

    if retry is not None:
        message.append(f"retry: {retry}")

    if isinstance(data, (dict, list)):
        data_str = json.dumps(data, cls=BSONEncoder)
    else:
        data_str = str(data)

    for line in data_str.splitlines():
        message.append(f"data: {line}")

    # End with a blank line to signal the end of the event
    message.append("")
    message.append("")

    return "\n".join(message)


async def stream_mongo_results(
    results_generator: AsyncIterable[Dict[str, Any]],
    batch_size: int = 10,
    delay: float = 0.0
) -> AsyncGenerator[str, None]:
    """
    Stream MongoDB results as SSE events.

    Once the response has started there is no status code left to change, so
    a failure mid-stream is reported as a final ``error`` event.

    Args:
        results_generator: Async generator producing MongoDB documents
        batch_size: Number of documents to batch in each event
        delay: Delay between batches in seconds

    Yields:
        SSE formatted events
    """
    batch = []
    count = 0

    try:
        async for doc in results_generator:
            batch.append(doc)
            count += 1

            if len(batch) >= batch_size:
                yield format_sse_event(
                    data={"batch": batch, "count": count, "batch_size": len(batch), "status": "streaming"},
                    event="batch"
                )
                batch = []

                if delay:
                    await asyncio.sleep(delay)

        # Send any remaining documents in the final batch
        if batch:
            yield format_sse_event(
                data={"batch": batch, "count": count, "batch_size": len(batch), "status": "streaming"},
                event="batch"
            )

        yield format_sse_event(
            data={"status": "complete", "total_count": count},
            event="complete"
        )

    except Exception as e:
        logger.error(f"Export stream failed after {count} documents: {str(e)}", exc_info=True)
        yield format_sse_event(
            data={"status": "error", "message": str(e)},
            event="error"
        )


async def document_generator(
    db,
    physical: PhysicalCollectionName,
    plan: QueryPlan
) -> AsyncGenerator[Dict[str, Any], None]:
    """
    Generate every document matching a plan's filter and sort.

    Pagination in the plan is ignored; exports cover the whole result set.

    Yields:
        Serialized MongoDB documents
    """
    cursor = db[physical.name].find(parse_query_object_ids(plan.filter)).sort(plan.sort_list())

    async for doc in cursor:
        yield serialize_mongo_doc(doc)
