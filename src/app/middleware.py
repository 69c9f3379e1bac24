import logging

from fastapi import Request
from fastapi.responses import RedirectResponse

from src.utils.helpers import validate_registration_token

logger = logging.getLogger(__name__)

# Confirmation pages that may only be reached with a registration token
PROTECTED_PATHS = ("/formsubmitted/workshop", "/formsubmitted/techelons")


async def registration_token_gate(request: Request, call_next):
    """
    Redirect to the home page unless the request carries a valid token.

    The token is unsigned base64, so this only keeps casual visitors away
    from the confirmation pages. It is not an authentication check.
    """
    if request.url.path in PROTECTED_PATHS:
        is_valid, reason = validate_registration_token(request.query_params.get("token"))
        if not is_valid:
            logger.info("Rejected %s: %s", request.url.path, reason)
            return RedirectResponse(url="/", status_code=307)

    return await call_next(request)
