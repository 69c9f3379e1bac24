from fastapi import HTTPException, Depends, Header

from src.config import get_settings

async def verify_api_key(x_api_key: str = Header(None)):
    """
    Verify the x-api-key header against SECRET_KEY
    """
    secret_key = get_settings().secret_key
    if not secret_key:
        raise HTTPException(
            status_code=503,
            detail="Admin API is disabled: SECRET_KEY is not configured"
        )

    if not x_api_key:
        raise HTTPException(
            status_code=401, 
            detail="x-api-key header is required"
        )
    
    if x_api_key != secret_key:
        raise HTTPException(
            status_code=403, 
            detail="Invalid API key"
        )
    
    return x_api_key

# Create a dependency that can be used in route decorators
api_key_dependency = Depends(verify_api_key)
