from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

security = HTTPBearer(auto_error=False)


async def verify_token(
    request: Request,
    credentials: HTTPAuthorizationCredentials = Depends(security)
):
    """
    Verify API token if authentication is enabled.

    Args:
        request: Incoming request, used to reach the application config
        credentials: Bearer token credentials

    Returns:
        True if authenticated or no auth required

    Raises:
        HTTPException: If authentication fails
    """
    api_token = request.app.state.config.api_token

    # If no API token is configured, allow all requests
    if not api_token:
        return True

    # If token is configured but no credentials provided
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required. Please provide a valid Bearer token."
        )

    # Verify token
    if credentials.credentials != api_token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication token."
        )

    return True
