from bson import ObjectId
from datetime import datetime
from typing import List, Dict, Any, Optional

from pymongo import DESCENDING, ReturnDocument

from database.db import get_requests_collection
from models.request import RequestStatus

# Helper to convert ObjectId to string
def serialize_object_id(doc):
    if doc.get("_id"):
        doc["id"] = str(doc["_id"])
        del doc["_id"]
    return doc

def _object_id(request_id: str) -> Optional[ObjectId]:
    if not ObjectId.is_valid(request_id):
        return None
    return ObjectId(request_id)

# Request operations
async def list_requests() -> List[Dict[str, Any]]:
    cursor = get_requests_collection().find({}).sort("createdAt", DESCENDING)
    requests = []
    async for request in cursor:
        requests.append(serialize_object_id(request))
    return requests

async def create_request(request_data: Dict[str, Any]) -> Dict[str, Any]:
    new_request = {
        "requester": request_data.get("requester") or "",
        "category": request_data.get("category"),
        "details": request_data.get("details") or "",
        "location": request_data["location"],
        "quantity": request_data.get("quantity") or "",
        "teamId": request_data.get("teamId") or None,
        "spocId": request_data.get("spocId") or None,
        "status": RequestStatus.PENDING.value,
        "createdAt": _now(),
    }
    result = await get_requests_collection().insert_one(new_request)
    new_request["_id"] = result.inserted_id
    return serialize_object_id(new_request)

async def get_request(request_id: str) -> Optional[Dict[str, Any]]:
    object_id = _object_id(request_id)
    if object_id is None:
        return None
    request = await get_requests_collection().find_one({"_id": object_id})
    if request:
        return serialize_object_id(request)
    return None

async def update_request(request_id: str, update_data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """Apply `update_data` and return the reloaded document, or None if it does not exist.

    There is no version check; concurrent updates to the same request are
    last-writer-wins.
    """
    object_id = _object_id(request_id)
    if object_id is None:
        return None

    if not update_data:
        return await get_request(request_id)

    request = await get_requests_collection().find_one_and_update(
        {"_id": object_id},
        {"$set": update_data},
        return_document=ReturnDocument.AFTER,
    )
    if request is None:
        return None
    return serialize_object_id(request)

async def delete_request(request_id: str) -> Optional[Dict[str, Any]]:
    """Delete a request and return the document as it was, or None if it does not exist."""
    object_id = _object_id(request_id)
    if object_id is None:
        return None

    request = await get_requests_collection().find_one_and_delete({"_id": object_id})
    if request is None:
        return None
    return serialize_object_id(request)

def _now() -> datetime:
    # Mongo keeps millisecond precision, trim so the response matches the stored value
    now = datetime.utcnow()
    return now.replace(microsecond=(now.microsecond // 1000) * 1000)
