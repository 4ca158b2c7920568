"""
Auth Broker — stateless GitHub OAuth relay and IndieAuth token endpoint.
GET /authorize/{user}/{repo}, GET /callback, GET|POST /token/{user}/{repo}, GET / and /health.
"""
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from auth_broker.authorize import router as authorize_router
from auth_broker.callback import router as callback_router
from auth_broker.config import SERVICE_NAME, VERSION
from auth_broker.token_endpoint import router as token_router

app = FastAPI(title="Auth Broker", version=VERSION)

# Browser clients call the token endpoint cross-origin
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
    max_age=86400,
)

app.include_router(authorize_router, tags=["authorize"])
app.include_router(callback_router, tags=["callback"])
app.include_router(token_router, tags=["token"])


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Render errors as a flat {"error": ...} body rather than FastAPI's {"detail": ...}."""
    body = exc.detail if isinstance(exc.detail, dict) else {"error": exc.detail}
    return JSONResponse(body, status_code=exc.status_code, headers=exc.headers)


@app.get("/")
@app.get("/health")
def health():
    """Health check endpoint."""
    return {"status": "ok", "service": SERVICE_NAME, "version": VERSION}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "auth_broker.main:app",
        host="127.0.0.1",
        port=8787,
        reload=True,
    )
