from fastapi import APIRouter, Depends, HTTPException, Response, status, Body
from typing import Annotated, List, Optional
import traceback

from models.request import RequestCreate, Request, RequestUpdate
from database.operations import (
    create_request,
    list_requests,
    update_request,
    delete_request
)
from database.sessions import SessionRecord
from realtime.events import broadcast_created, broadcast_updated, broadcast_deleted
from routers.spoc import require_spoc
from logging_config import logger

router = APIRouter()

def _persistence_error(action: str, e: Exception) -> HTTPException:
    logger.error(f"Failed to {action}: {str(e)}")
    logger.error(traceback.format_exc())
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=str(e)
    )

# List all requests
@router.get(
    "",
    response_model=List[Request],
    summary="List requests",
    description="""
    Get every service request, newest first.

    There is no filtering or pagination; clients filter by team themselves.

    ### curl Example
    ```bash
    curl -X 'GET' 'http://localhost:4000/api/requests' -H 'accept: application/json'
    ```
    """,
    response_description="Returns all requests ordered by creation time, newest first"
)
async def get_requests():
    try:
        return await list_requests()
    except Exception as e:
        raise _persistence_error("list requests", e)

# Submit a request (no authentication)
@router.post(
    "",
    response_model=Request,
    status_code=status.HTTP_201_CREATED,
    summary="Submit a service request",
    description="""
    Submit a new service request (Tea, Coffee, WiFi, ...).

    `location` is required. The request starts as **pending** and is pushed to
    all connected clients, to the `spoc:<spocId>` room and to the `team:<teamId>` room.

    ### curl Example
    ```bash
    curl -X 'POST' \\
      'http://localhost:4000/api/requests' \\
      -H 'Content-Type: application/json' \\
      -d '{
        "requester": "Al",
        "category": "Tea",
        "location": "3F-212",
        "quantity": "2",
        "teamId": "team-1",
        "spocId": "spoc-anita"
      }'
    ```
    """,
    response_description="Returns the created request with its id, status and timestamp"
)
async def submit_request(
    request_data: RequestCreate = Body(
        ...,
        example={
            "requester": "Al",
            "category": "Tea",
            "details": "Less sugar",
            "location": "3F-212",
            "quantity": "2",
            "teamId": "team-1",
            "spocId": "spoc-anita"
        }
    )
):
    if not request_data.location or not request_data.location.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Location is required"
        )

    try:
        created = await create_request(request_data.model_dump(by_alias=True))
    except Exception as e:
        raise _persistence_error("create request", e)

    logger.info(f"Request {created['id']} created for team {created['teamId']}")
    await broadcast_created(created)
    return created

# Update a request (SPOC only)
@router.patch(
    "/{request_id}",
    response_model=Request,
    summary="Update a request (SPOC only)",
    description="""
    Apply a partial update to a request, usually `{"status": "done"}`.

    Requires a valid `x-spoc-token` header. The updated request is pushed as
    `request:updated` to all clients and to the request's team and SPOC rooms.

    ### curl Example
    ```bash
    curl -X 'PATCH' \\
      'http://localhost:4000/api/requests/61a23c4567d0d8992e610d96' \\
      -H 'x-spoc-token: 3f1c...' \\
      -H 'Content-Type: application/json' \\
      -d '{"status": "done"}'
    ```
    """,
    response_description="Returns the updated request"
)
async def patch_request(
    request_id: str,
    session: Annotated[Optional[SessionRecord], Depends(require_spoc)],
    update_data: RequestUpdate = Body(..., example={"status": "done"})
):
    updates = update_data.model_dump(by_alias=True, exclude_unset=True, exclude_none=True)
    if "location" in updates and not updates["location"].strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Location is required"
        )

    try:
        updated = await update_request(request_id, updates)
    except Exception as e:
        raise _persistence_error("update request", e)

    if updated is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Request not found"
        )

    logger.info(f"Request {request_id} updated by {session.spoc_id if session and session.spoc_id else 'SPOC'}: {updates}")
    await broadcast_updated(updated)
    return updated

# Delete a request (SPOC only)
@router.delete(
    "/{request_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    summary="Delete a request (SPOC only)",
    description="""
    Delete a request. Requires a valid `x-spoc-token` header.

    A `request:deleted` event carrying only the id is pushed to all clients
    and to the request's team and SPOC rooms.
    """
)
async def remove_request(
    request_id: str,
    session: Annotated[Optional[SessionRecord], Depends(require_spoc)]
):
    try:
        deleted = await delete_request(request_id)
    except Exception as e:
        raise _persistence_error("delete request", e)

    if deleted is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Request not found"
        )

    logger.info(f"Request {request_id} deleted")
    await broadcast_deleted(deleted)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
