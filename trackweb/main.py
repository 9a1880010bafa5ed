from typing import Any

import uvicorn
from fastapi import Request
from prometheus_fastapi_instrumentator import Instrumentator

from trackweb import create_app
from trackweb.core.config import settings
from trackweb.core.logging import configure_logging

configure_logging(settings.LOG_LEVEL, settings.LOG_FORMAT)
app = create_app(settings)
instrumentator = Instrumentator(excluded_handlers=["/metrics", "/static.*"])
instrumentator.instrument(app).expose(app, include_in_schema=False)


@app.get("/health")
async def health(request: Request) -> dict[str, Any]:
    result = await request.app.state.api_client.check_health()
    return {"ok": True, "backend": result.ok}


def run() -> None:
    uvicorn.run("trackweb.main:app", host=settings.HOST, port=settings.PORT)


if __name__ == "__main__":
    run()
