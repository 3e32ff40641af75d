from fastapi import APIRouter, Depends, Header, HTTPException, status, Body
from typing import Annotated, Optional

import config
from database.sessions import SessionRecord, SessionStore, get_session_store
from models.spoc import UnlockMethod, UnlockRequest, UnlockResponse, ValidateResponse
from logging_config import logger

router = APIRouter()

# Authentication gate for mutating request routes
async def require_spoc(
    store: Annotated[SessionStore, Depends(get_session_store)],
    x_spoc_token: Annotated[Optional[str], Header()] = None,
    x_spoc_pin: Annotated[Optional[str], Header()] = None,
) -> Optional[SessionRecord]:
    """Accept a valid SPOC session token, or the shared PIN header as a development fallback.

    Any valid session may act on any request; there is no per-team check.
    Returns the session record, or None when the PIN fallback was used.
    """
    session = store.get(x_spoc_token)
    if session is not None:
        return session

    if x_spoc_pin and x_spoc_pin == config.SPOC_PIN:
        logger.warning("Development fallback: x-spoc-pin used to authorize request.")
        return None

    logger.warning("Rejected SPOC request: missing, invalid or expired token")
    raise HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail="Forbidden: valid SPOC token required"
    )

@router.post(
    "/unlock",
    response_model=UnlockResponse,
    response_model_exclude_none=True,
    summary="Unlock a SPOC session",
    description="""
    Exchange the shared SPOC PIN, or a SPOC id, for a session token.

    - If `pin` equals the shared PIN the token is not bound to a SPOC (`method: "pin"`).
    - Any other non-empty value is taken as the SPOC id and the token is bound to it (`method: "spocId"`).

    Send the token as the `x-spoc-token` header on PATCH and DELETE calls.

    ### curl Example
    ```bash
    curl -X 'POST' \\
      'http://localhost:4000/api/spoc/unlock' \\
      -H 'Content-Type: application/json' \\
      -d '{"pin": "spoc-anita"}'
    ```
    """,
    response_description="Returns the session token and its lifetime in seconds"
)
async def unlock(
    store: Annotated[SessionStore, Depends(get_session_store)],
    unlock_data: UnlockRequest = Body(..., example={"pin": "spoc-anita"}),
):
    raw_pin = unlock_data.pin or ""
    pin = raw_pin.strip()
    if not pin:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="PIN required"
        )

    ttl = config.SPOC_TOKEN_TTL_SECONDS
    # Exact match only, a padded PIN falls through to the SPOC id branch
    if raw_pin == config.SPOC_PIN:
        session = store.generate(ttl)
        logger.info("SPOC session unlocked with shared PIN")
        return {"token": session.token, "expiresIn": ttl, "method": UnlockMethod.PIN}

    # No registry lookup: any other value is accepted as the SPOC id
    session = store.generate(ttl, spoc_id=pin)
    logger.info(f"SPOC session unlocked for spoc id {pin}")
    return {
        "token": session.token,
        "expiresIn": ttl,
        "method": UnlockMethod.SPOC_ID,
        "spocId": session.spoc_id,
    }

@router.get(
    "/validate",
    response_model=ValidateResponse,
    response_model_exclude_none=True,
    summary="Validate a SPOC session token",
    response_description="Returns ok and the SPOC id bound to the token, if any"
)
async def validate(
    store: Annotated[SessionStore, Depends(get_session_store)],
    x_spoc_token: Annotated[Optional[str], Header()] = None,
):
    session = store.get(x_spoc_token)
    if session is None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid or expired SPOC token"
        )
    return {"ok": True, "spocId": session.spoc_id}
