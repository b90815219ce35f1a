from fastapi import HTTPException, Request


async def get_client_session(request: Request):
    """
    FastAPI dependency provider for the view adapter's ClientSession.
    The session is created at startup and kept on `request.app.state.session`.
    """
    session = getattr(request.app.state, "session", None)
    if session is None:
        raise HTTPException(status_code=503, detail="Client session is not initialized.")
    return session
